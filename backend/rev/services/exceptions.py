"""Errors raised by the service layer and translated to HTTP responses by the API."""
from typing import Any, Dict, Optional


class ServiceError(Exception):
    """Base class for service-layer errors."""


class WaveAPIError(ServiceError):
    """A Wave API call failed. ``status_code`` mirrors the provider's answer."""

    def __init__(self, status_code: int, payload: Optional[Dict[str, Any]] = None):
        self.status_code = status_code
        self.payload = payload or {}
        super().__init__(f"Wave API error {status_code}: {self.message}")

    @property
    def message(self) -> str:
        return str(self.payload.get("message") or self.payload.get("code") or "Unknown Wave error")


class EmailNotConfiguredError(ServiceError):
    pass


class EmailDeliveryError(ServiceError):
    pass


class PDFRenderError(ServiceError):
    pass
