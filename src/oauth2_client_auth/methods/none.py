"""The ``none`` method: public clients that present no credentials."""

from __future__ import annotations

from typing import Any

from oauth2_client_auth.client import Client
from oauth2_client_auth.constants import CLIENT_ID_FIELD, NONE
from oauth2_client_auth.methods.protocol import AuthenticationMethod
from oauth2_client_auth.request import TokenRequest


class NoneMethod:
    """Identifies a public client from the ``client_id`` body parameter."""

    def supported_methods(self) -> list[str]:
        return [NONE]

    def find_client_id_and_credentials(self, request: TokenRequest) -> tuple[str, Any] | None:
        client_id = request.form.get(CLIENT_ID_FIELD)
        if not client_id:
            return None
        return client_id, None

    def is_client_authenticated(self, client: Client, credentials: Any, request: TokenRequest) -> bool:
        return True

    def schemes_parameters(self) -> list[str]:
        return []

    def check_client_configuration(
        self, command_parameters: dict[str, Any], validated_parameters: dict[str, Any]
    ) -> dict[str, Any]:
        return validated_parameters


# Verify protocol compliance at import time
assert isinstance(NoneMethod(), AuthenticationMethod)
