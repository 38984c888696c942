"""The ``client_secret_post`` method: credentials in the form body."""

from __future__ import annotations

from typing import Any

from oauth2_client_auth.constants import CLIENT_ID_FIELD, CLIENT_SECRET_FIELD, CLIENT_SECRET_POST
from oauth2_client_auth.methods.protocol import AuthenticationMethod
from oauth2_client_auth.methods.secret import SharedSecretMethod
from oauth2_client_auth.request import TokenRequest


class ClientSecretPost(SharedSecretMethod):
    """Reads ``client_id`` and ``client_secret`` from a form-encoded body."""

    def supported_methods(self) -> list[str]:
        return [CLIENT_SECRET_POST]

    def find_client_id_and_credentials(self, request: TokenRequest) -> tuple[str, Any] | None:
        client_id = request.form.get(CLIENT_ID_FIELD)
        client_secret = request.form.get(CLIENT_SECRET_FIELD)
        if not client_id or client_secret is None:
            return None
        return client_id, client_secret

    def schemes_parameters(self) -> list[str]:
        return []


assert isinstance(ClientSecretPost(), AuthenticationMethod)
