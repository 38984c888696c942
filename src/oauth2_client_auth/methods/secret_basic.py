"""The ``client_secret_basic`` method: HTTP Basic authentication (RFC 6749 §2.3.1)."""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Any
from urllib.parse import unquote_plus

from oauth2_client_auth.constants import CLIENT_SECRET_BASIC
from oauth2_client_auth.methods.protocol import AuthenticationMethod
from oauth2_client_auth.methods.secret import SharedSecretMethod
from oauth2_client_auth.request import TokenRequest

logger = logging.getLogger(__name__)


class ClientSecretBasic(SharedSecretMethod):
    """Reads the client id and secret from an ``Authorization: Basic`` header.

    Args:
        realm: Realm advertised in the ``WWW-Authenticate`` challenge.
        secret_lifetime: Seconds a generated secret stays valid, 0 for unlimited.
    """

    def __init__(self, realm: str, secret_lifetime: int = 0) -> None:
        super().__init__(secret_lifetime)
        if not realm:
            raise ValueError("realm must not be empty")
        self._realm = realm

    def supported_methods(self) -> list[str]:
        return [CLIENT_SECRET_BASIC]

    def find_client_id_and_credentials(self, request: TokenRequest) -> tuple[str, Any] | None:
        auth_header = request.header("authorization", "")
        if not auth_header.lower().startswith("basic "):
            return None

        encoded = auth_header[6:].strip()
        try:
            decoded = base64.b64decode(encoded, validate=True).decode("utf-8")
        except (binascii.Error, ValueError):
            logger.debug("Malformed Basic authorization header")
            return None

        client_id, sep, client_secret = decoded.partition(":")
        if not sep or not client_id:
            return None
        return unquote_plus(client_id), unquote_plus(client_secret)

    def schemes_parameters(self) -> list[str]:
        return [f'Basic realm="{self._realm}",charset="UTF-8"']


assert isinstance(ClientSecretBasic("oauth2"), AuthenticationMethod)
