"""
Thin client for the Wave Business API (https://docs.wave.com/business).

Calls are blocking and never retried; callers in the async API run them on
the event loop's executor through ``run_blocking``.
"""
import asyncio
import functools
import logging
from typing import Any, Callable, Dict, List, Optional, TypeVar

import requests

from rev.core.config import settings
from rev.services.exceptions import WaveAPIError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Wave only settles in a handful of currencies; local labels map onto them
_CURRENCY_ALIASES = {
    "FCFA": "XOF",
    "CFA": "XOF",
    "XOF": "XOF",
    "EUR": "EUR",
    "USD": "USD",
}


def format_wave_amount(amount: float) -> str:
    """Wave expects XOF amounts as integer strings."""
    return str(int(round(float(amount))))


def get_wave_currency(currency: Optional[str]) -> str:
    return _CURRENCY_ALIASES.get((currency or "").strip().upper(), "XOF")


async def run_blocking(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(func, *args, **kwargs))


class WaveClient:
    """Wave API client bound to one merchant API key."""

    def __init__(self, api_key: str, base_url: Optional[str] = None, timeout: Optional[float] = None):
        self.base_url = (base_url or settings.WAVE_API_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.WAVE_REQUEST_TIMEOUT
        self.session = requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        })

    def close(self) -> None:
        self.session.close()

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        logger.debug(f"Wave {method} {path}")
        try:
            response = self.session.request(
                method, url, params=params, json=json, headers=headers, timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Wave request {method} {path} failed: {e}")
            raise WaveAPIError(502, {"message": f"Wave API unreachable: {e}"}) from e

        if not response.ok:
            try:
                payload = response.json()
            except ValueError:
                payload = {"message": response.text or "Unknown error"}
            if not isinstance(payload, dict):
                payload = {"message": str(payload)}
            logger.warning(f"Wave {method} {path} returned {response.status_code}: {payload}")
            raise WaveAPIError(response.status_code, payload)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            raise WaveAPIError(502, {"message": "Wave returned a non-JSON response"})

    # --- Balance ---
    def get_balance(self) -> Dict[str, Any]:
        return self._request("GET", "/v1/balance")

    # --- Checkout sessions ---
    def create_checkout_session(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/v1/checkout/sessions", json=payload)

    def get_checkout_session(self, session_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/v1/checkout/sessions/{session_id}")

    def search_checkout_sessions(self, client_reference: str) -> Dict[str, Any]:
        return self._request("GET", "/v1/checkout/sessions/search", params={"client_reference": client_reference})

    def refund_checkout_session(self, session_id: str) -> Dict[str, Any]:
        return self._request("POST", f"/v1/checkout/sessions/{session_id}/refund")

    def expire_checkout_session(self, session_id: str) -> Dict[str, Any]:
        return self._request("POST", f"/v1/checkout/sessions/{session_id}/expire")

    # --- Payouts ---
    def create_payout(self, payload: Dict[str, Any], idempotency_key: str) -> Dict[str, Any]:
        return self._request("POST", "/v1/payout", json=payload, headers={"Idempotency-Key": idempotency_key})

    def get_payout(self, payout_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/v1/payout/{payout_id}")

    def reverse_payout(self, payout_id: str) -> Dict[str, Any]:
        return self._request("POST", f"/v1/payout/{payout_id}/reverse")

    def create_payout_batch(self, payouts: List[Dict[str, Any]], idempotency_key: str) -> Dict[str, Any]:
        return self._request(
            "POST", "/v1/payout-batch", json={"payouts": payouts}, headers={"Idempotency-Key": idempotency_key}
        )

    def get_payout_batch(self, batch_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/v1/payout-batch/{batch_id}")

    # --- Transactions ---
    def list_transactions(
        self, date: Optional[str] = None, first: Optional[int] = None, after: Optional[str] = None
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        if date: params["date"] = date
        if first: params["first"] = first
        if after: params["after"] = after
        return self._request("GET", "/v1/transactions", params=params)
