# src/tracking/client_id.py
# The long-lived client ID cookie
#
# A client ID identifies a browser across instances (page loads). It is kept
# in a cookie as a base-36 number, signed with itsdangerous when a secret key
# is configured so clients cannot pick someone else's ID.

import string
from datetime import datetime, timedelta, timezone
from typing import Optional

from itsdangerous import BadSignature, Signer

from config import settings
from logger import get_logger

logger = get_logger(__name__)

CLIENT_ID_COOKIE_NAME = "track_clientid"
CLIENT_ID_COOKIE_MAX_AGE = timedelta(days=365 * 10)

_BASE36_DIGITS = string.digits + string.ascii_lowercase


class ClientIDError(ValueError):
    """Raised when a client ID cookie value cannot be decoded."""


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError(f"client ID must be non-negative, got {value}")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36_DIGITS[rem])
    return "".join(reversed(digits))


def _signer(secret_key: Optional[str]) -> Optional[Signer]:
    key = settings.tracker.secret_key if secret_key is None else secret_key
    return Signer(key, salt=CLIENT_ID_COOKIE_NAME) if key else None


def encode_client_id(client_id: int, secret_key: Optional[str] = None) -> str:
    """
    Encode a client ID as a cookie value.

    Args:
        client_id: The client ID
        secret_key: Signing key (defaults to TRACK_SECRET_KEY; empty disables signing)
    """
    value = to_base36(client_id)
    signer = _signer(secret_key)
    if signer is not None:
        value = signer.sign(value).decode("ascii")
    return value


def decode_client_id(cookie_value: str, secret_key: Optional[str] = None) -> int:
    """
    Decode a cookie value produced by encode_client_id.

    Raises:
        ClientIDError: If the signature is bad or the value is not base-36
    """
    value = cookie_value
    signer = _signer(secret_key)
    if signer is not None:
        try:
            value = signer.unsign(cookie_value).decode("ascii")
        except BadSignature as e:
            raise ClientIDError(f"bad signature on {CLIENT_ID_COOKIE_NAME} cookie") from e

    try:
        return int(value, 36)
    except ValueError as e:
        raise ClientIDError(f"{CLIENT_ID_COOKIE_NAME} cookie value {value!r} is not base-36") from e


def read_client_id(request) -> Optional[int]:
    """
    Get the client ID from a request's cookies.

    Returns:
        The client ID, or None if there is no cookie or it cannot be decoded
    """
    cookie_value = request.cookies.get(CLIENT_ID_COOKIE_NAME)
    if not cookie_value:
        return None
    try:
        return decode_client_id(cookie_value)
    except ClientIDError as e:
        logger.warning(f"Ignoring {CLIENT_ID_COOKIE_NAME} cookie: {e}")
        return None


def set_client_id_cookie(response, client_id: int) -> None:
    """Attach the client ID cookie to a response."""
    response.set_cookie(
        CLIENT_ID_COOKIE_NAME,
        encode_client_id(client_id),
        path="/",
        max_age=CLIENT_ID_COOKIE_MAX_AGE,
        expires=datetime.now(timezone.utc) + CLIENT_ID_COOKIE_MAX_AGE,
    )
