"""Error hierarchy and the mapper that collapses it into OAuth2 error responses."""

from __future__ import annotations

from typing import Any

from oauth2_client_auth.constants import (
    ERROR_INVALID_CLIENT,
    MESSAGE_AMBIGUOUS,
    MESSAGE_AUTHENTICATION_FAILED,
    MESSAGE_CREDENTIALS_EXPIRED,
)


class ClientAuthError(Exception):
    """Base class for every error raised by oauth2-client-auth."""


class UnsupportedMethod(ClientAuthError, LookupError):
    """A scheme name was requested that no registered method answers to.

    Attributes:
        name: The requested scheme name.
        valid_names: Every bound scheme name, in registration order.
    """

    def __init__(self, name: str, valid_names: list[str]) -> None:
        self.name = name
        self.valid_names = list(valid_names)
        super().__init__(
            f'The token endpoint authentication method "{name}" is not supported. '
            f"Please use one of the following values: {', '.join(self.valid_names)}"
        )


class AmbiguousAuthentication(ClientAuthError):
    """Two credentialed methods matched the same request."""

    description = MESSAGE_AMBIGUOUS

    def __init__(self, first: str, second: str) -> None:
        self.first = first
        self.second = second
        super().__init__(f"{MESSAGE_AMBIGUOUS} ({first}, {second})")


class ClientAuthenticationFailed(ClientAuthError):
    """A resolved client failed lookup, eligibility or verification.

    ``description`` is safe to show to the caller, ``reason`` is for logs only.
    """

    description = MESSAGE_AUTHENTICATION_FAILED
    reason = "client authentication failed"

    def __init__(self, client_id: str) -> None:
        self.client_id = client_id
        super().__init__(f"{self.reason} (client_id={client_id})")


class ClientNotFound(ClientAuthenticationFailed):
    reason = "client not found"


class ClientDeleted(ClientAuthenticationFailed):
    reason = "client is deleted"


class ClientCredentialsExpired(ClientAuthenticationFailed):
    description = MESSAGE_CREDENTIALS_EXPIRED
    reason = "client credentials expired"


class ClientSchemeMismatch(ClientAuthenticationFailed):
    reason = "authentication method not allowed for client"


class CredentialInvalid(ClientAuthenticationFailed):
    reason = "invalid credentials"


class OAuth2Error(Exception):
    """The single error type that leaves the authentication gate.

    Args:
        status_code: HTTP status of the response.
        error: OAuth2 error code (e.g. ``invalid_client``).
        description: Human readable ``error_description``.
    """

    def __init__(self, status_code: int, error: str, description: str) -> None:
        self.status_code = status_code
        self.error = error
        self.description = description
        super().__init__(description)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.error, "error_description": self.description}


class ErrorMapper:
    """Maps internal errors to the uniform ``invalid_client`` response."""

    def to_oauth2_error(self, error: Exception) -> OAuth2Error:
        """Convert any exception raised while authenticating a client.

        Known errors keep their public ``description``; anything else is
        reported with the generic message so internals never leak.
        """
        if isinstance(error, OAuth2Error):
            return error
        if isinstance(error, (ClientAuthenticationFailed, AmbiguousAuthentication)):
            return OAuth2Error(401, ERROR_INVALID_CLIENT, error.description)
        return OAuth2Error(401, ERROR_INVALID_CLIENT, MESSAGE_AUTHENTICATION_FAILED)

    def reason(self, error: Exception) -> str:
        """Return the internal, log-only reason for an error."""
        if isinstance(error, ClientAuthenticationFailed):
            return error.reason
        if isinstance(error, AmbiguousAuthentication):
            return f"ambiguous authentication ({error.first}, {error.second})"
        return f"unexpected {type(error).__name__}"
