"""Shared-secret helpers: generation and constant-time comparison."""

from __future__ import annotations

import base64
import hmac
import secrets
import time
from typing import Any

from oauth2_client_auth.client import Client
from oauth2_client_auth.constants import CLIENT_SECRET, CLIENT_SECRET_EXPIRES_AT, SECRET_BYTES
from oauth2_client_auth.request import TokenRequest


def create_client_secret() -> str:
    """Return a URL-safe, unpadded base64 secret carrying 256 bits of entropy."""
    return base64.urlsafe_b64encode(secrets.token_bytes(SECRET_BYTES)).rstrip(b"=").decode("ascii")


def secrets_match(stored: Any, presented: Any) -> bool:
    """Constant-time equality of two secrets. Non-string inputs never match."""
    if not isinstance(stored, str) or not isinstance(presented, str) or not stored:
        return False
    # compare_digest only accepts ASCII str, so compare the UTF-8 bytes
    return hmac.compare_digest(stored.encode("utf-8"), presented.encode("utf-8"))


class SharedSecretMethod:
    """Verification and provisioning common to the client secret methods.

    Args:
        secret_lifetime: Seconds a generated secret stays valid, 0 for unlimited.
    """

    def __init__(self, secret_lifetime: int = 0) -> None:
        if secret_lifetime < 0:
            raise ValueError("The secret lifetime must be at least 0 (= unlimited).")
        self._secret_lifetime = secret_lifetime

    @property
    def secret_lifetime(self) -> int:
        return self._secret_lifetime

    def is_client_authenticated(self, client: Client, credentials: Any, request: TokenRequest) -> bool:
        return secrets_match(client.get(CLIENT_SECRET), credentials)

    def check_client_configuration(
        self, command_parameters: dict[str, Any], validated_parameters: dict[str, Any]
    ) -> dict[str, Any]:
        validated_parameters[CLIENT_SECRET] = create_client_secret()
        validated_parameters[CLIENT_SECRET_EXPIRES_AT] = (
            0 if self._secret_lifetime == 0 else int(time.time()) + self._secret_lifetime
        )
        return validated_parameters
