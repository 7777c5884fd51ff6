"""Bearer credential capability consumed by the notification client.

Token storage belongs to the authentication layer of the application; the
client only asks a provider for the current token and checks whether it is
still usable.
"""

import time
from collections.abc import Callable

import jwt
import structlog

from catalog_notifications.config import get_settings

logger = structlog.get_logger(__name__)

CredentialProvider = Callable[[], str | None]
"""Callable returning the current bearer token, or None when logged out."""


def decode_token_payload(token: str) -> dict | None:
    """Decode the claims of a JWT without verifying its signature.

    Signature verification is the API's job; the client only reads ``exp``.

    Args:
        token: Encoded JWT

    Returns:
        The claims dictionary, or None if the token cannot be decoded
    """
    try:
        return jwt.decode(
            token,
            options={"verify_signature": False, "verify_exp": False},
        )
    except jwt.PyJWTError as e:
        logger.warning("Failed to decode JWT payload", error=str(e))
        return None


def is_token_expired(token: str, now: float | None = None) -> bool:
    """Check whether a JWT is expired.

    A token without a decodable payload or without an ``exp`` claim is
    treated as expired.

    Args:
        token: Encoded JWT
        now: Current Unix time in seconds (defaults to ``time.time()``)

    Returns:
        True if the token can no longer be used
    """
    payload = decode_token_payload(token)
    if not payload or "exp" not in payload:
        return True

    try:
        expires_at = float(payload["exp"])
    except (TypeError, ValueError):
        return True

    current_time = time.time() if now is None else now
    return expires_at < current_time


def has_valid_credential(provider: CredentialProvider) -> bool:
    """Return True when the provider yields a token that is not expired."""
    token = provider()
    return bool(token) and not is_token_expired(token)


class StaticCredentialProvider:
    """Provider returning a fixed token (tests, scripts, service accounts)."""

    def __init__(self, token: str | None):
        """Initialize static provider.

        Args:
            token: Bearer token, or None for an anonymous provider
        """
        self._token = token

    def __call__(self) -> str | None:
        """Return the configured token."""
        return self._token

    def update(self, token: str | None) -> None:
        """Swap the token, e.g. after the auth layer refreshed it."""
        self._token = token


class EnvironmentCredentialProvider:
    """Provider reading ``CATALOG_NOTIFICATIONS_ACCESS_TOKEN`` from settings."""

    def __call__(self) -> str | None:
        """Return the token from the current settings."""
        return get_settings().access_token
