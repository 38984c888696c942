"""AuthenticationMethod protocol for pluggable client authentication schemes."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from oauth2_client_auth.client import Client
from oauth2_client_auth.request import TokenRequest


@runtime_checkable
class AuthenticationMethod(Protocol):
    """Protocol for token endpoint authentication methods.

    Implementations inspect a request for their own markers and, once the
    client has been loaded, check the presented credentials against it.
    Neither step may raise on malformed input.
    """

    def supported_methods(self) -> list[str]:
        """Scheme names this implementation answers to."""
        ...

    def find_client_id_and_credentials(self, request: TokenRequest) -> tuple[str, Any] | None:
        """Extract ``(client_id, credentials)`` from the request.

        Returns:
            The claimed client id and the credentials, or ``None`` when the
            method's markers are absent or malformed.
        """
        ...

    def is_client_authenticated(self, client: Client, credentials: Any, request: TokenRequest) -> bool:
        """Check the credentials against the client's stored material."""
        ...

    def schemes_parameters(self) -> list[str]:
        """Challenge strings for the ``WWW-Authenticate`` header."""
        ...

    def check_client_configuration(
        self, command_parameters: dict[str, Any], validated_parameters: dict[str, Any]
    ) -> dict[str, Any]:
        """Complete a new client's configuration for this method."""
        ...


def is_none_method(method: AuthenticationMethod) -> bool:
    """True for the anonymous ``none`` method, whatever its implementation."""
    return "none" in method.supported_methods()
