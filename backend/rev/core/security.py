from datetime import datetime, timedelta, timezone
from typing import Any, Union, Optional
import hashlib
import hmac
import secrets

from jose import jwt, JWTError
from passlib.context import CryptContext
from pydantic import ValidationError

from rev.core.config import settings
from rev.schemas.user import TokenPayload

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ALGORITHM = settings.ALGORITHM
SECRET_KEY = settings.SECRET_KEY
ACCESS_TOKEN_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES


def create_access_token(
    subject: Union[str, Any], expires_delta: Optional[timedelta] = None
) -> str:
    """
    Creates a new JWT access token.
    'subject' is the user ID.
    """
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode = {"exp": expire, "sub": str(subject)}
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def decode_token(token: str) -> Optional[TokenPayload]:
    """
    Decodes a JWT token and returns the payload if valid.
    Returns None if the token is invalid or expired.
    """
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        return TokenPayload.model_validate(payload)
    except (JWTError, ValidationError):
        return None


# --- Webhook signatures ---

def compute_webhook_signature(secret: str, timestamp: str, raw_body: bytes) -> str:
    """Hex HMAC-SHA256 of ``timestamp + raw_body`` keyed by ``secret``."""
    message = timestamp.encode("utf-8") + raw_body
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def parse_signature_header(header: Optional[str]) -> Optional[tuple[str, list[str]]]:
    """
    Splits a ``t=<timestamp>,v1=<sig>[,v1=<sig>...]`` header.
    Returns (timestamp, signatures) or None when the header is unusable.
    """
    if not header:
        return None
    timestamp = None
    signatures: list[str] = []
    for part in header.split(","):
        key, sep, value = part.strip().partition("=")
        if not sep:
            continue
        if key == "t":
            timestamp = value
        elif key == "v1" and value:
            signatures.append(value)
    if not timestamp or not signatures:
        return None
    return timestamp, signatures


def verify_webhook_signature(secret: str, header: Optional[str], raw_body: bytes) -> bool:
    parsed = parse_signature_header(header)
    if not parsed or not secret:
        return False
    timestamp, signatures = parsed
    expected = compute_webhook_signature(secret, timestamp, raw_body)
    return any(hmac.compare_digest(expected, candidate) for candidate in signatures)


def generate_webhook_secret() -> str:
    return f"wave_sn_WHS_{secrets.token_hex(32)}"
