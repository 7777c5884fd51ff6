"""Credential capability for the notification client."""

from catalog_notifications.auth.credentials import (
    CredentialProvider,
    EnvironmentCredentialProvider,
    StaticCredentialProvider,
    decode_token_payload,
    has_valid_credential,
    is_token_expired,
)

__all__ = [
    "CredentialProvider",
    "EnvironmentCredentialProvider",
    "StaticCredentialProvider",
    "decode_token_payload",
    "has_valid_credential",
    "is_token_expired",
]
