"""ASGI middleware that authenticates OAuth2 clients before the token endpoint runs."""

from __future__ import annotations

import inspect
import logging
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any

from starlette.responses import JSONResponse

from oauth2_client_auth.client import Client, ClientRepository
from oauth2_client_auth.constants import (
    ERROR_INVALID_CLIENT,
    ERROR_INVALID_REQUEST,
    MAX_BODY_SIZE,
    MESSAGE_BODY_TOO_LARGE,
    STATE_AUTHENTICATION_METHOD,
    STATE_CLIENT,
    STATE_CLIENT_CREDENTIALS,
    TOKEN_ENDPOINT_AUTH_METHOD,
)
from oauth2_client_auth.errors import (
    ClientCredentialsExpired,
    ClientDeleted,
    ClientNotFound,
    ClientSchemeMismatch,
    CredentialInvalid,
    ErrorMapper,
    OAuth2Error,
)
from oauth2_client_auth.methods import AuthenticationMethod
from oauth2_client_auth.registry import MethodRegistry, Resolution
from oauth2_client_auth.request import TokenRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClientAuthentication:
    """A successfully authenticated client and how it authenticated."""

    client: Client
    method: AuthenticationMethod
    credentials: Any


# Bridge between the ASGI middleware and the token endpoint handler
client_authentication_var: ContextVar[ClientAuthentication | None] = ContextVar(
    "client_authentication", default=None
)


class ClientAuthenticationMiddleware:
    """ASGI middleware that identifies and verifies the calling client.

    Requests without any client authentication pass through untouched; the
    endpoint decides whether authentication was required. Requests carrying
    credentials are either authenticated or rejected with a uniform 401
    ``invalid_client`` response.

    Args:
        app: The ASGI application to wrap.
        registry: The authentication methods to evaluate.
        repository: Client store, sync or async ``find(client_id)``.
        exempt_paths: Exact paths that bypass client authentication.
        exempt_prefixes: Path prefixes that bypass client authentication.
        challenge_parameters: Extra parameters appended to ``WWW-Authenticate``
            challenges on failure.
        max_body_size: Largest request body, in bytes, buffered for inspection.
            Larger bodies are rejected with 413 ``invalid_request``.
    """

    def __init__(
        self,
        app: Any,
        registry: MethodRegistry,
        repository: ClientRepository,
        *,
        exempt_paths: set[str] | None = None,
        exempt_prefixes: set[str] | None = None,
        challenge_parameters: dict[str, Any] | None = None,
        max_body_size: int = MAX_BODY_SIZE,
    ) -> None:
        self._app = app
        self._registry = registry
        self._repository = repository
        self._exempt_paths = exempt_paths if exempt_paths is not None else {"/health"}
        self._exempt_prefixes = exempt_prefixes or set()
        self._challenge_parameters = challenge_parameters or {}
        self._max_body_size = max_body_size
        self._error_mapper = ErrorMapper()

    def _is_exempt(self, path: str) -> bool:
        """Check if a path is exempt from client authentication."""
        if path in self._exempt_paths:
            return True
        return any(path.startswith(prefix) for prefix in self._exempt_prefixes)

    async def process(self, request: TokenRequest) -> ClientAuthentication | None:
        """Resolve and verify the client presented by ``request``.

        Returns:
            The authenticated client, or ``None`` when the request carries no
            client authentication at all.

        Raises:
            OAuth2Error: 401 ``invalid_client`` whenever presented credentials
                cannot be accepted, whatever the internal reason.
        """
        client_id: str | None = None
        try:
            resolution = self._registry.find_client_id_and_credentials(request)
            if resolution is None:
                return None
            client_id = resolution.client_id
            client = await self._find_client(resolution.client_id)
            self._check_client(client)
            self._check_authentication_method(request, client, resolution)
        except Exception as exc:
            logger.warning(
                "Client authentication failed for %s: %s (client_id=%s)",
                request.path,
                self._error_mapper.reason(exc),
                client_id,
            )
            raise self._error_mapper.to_oauth2_error(exc) from exc

        logger.debug("Client %s authenticated via %s", client.client_id, resolution.method.supported_methods()[0])
        return ClientAuthentication(client=client, method=resolution.method, credentials=resolution.credentials)

    async def _find_client(self, client_id: str) -> Client:
        result = self._repository.find(client_id)
        if inspect.isawaitable(result):
            result = await result
        if result is None:
            raise ClientNotFound(client_id)
        return result

    @staticmethod
    def _check_client(client: Client) -> None:
        if client.is_deleted():
            raise ClientDeleted(client.client_id)
        if client.are_client_credentials_expired():
            raise ClientCredentialsExpired(client.client_id)

    @staticmethod
    def _check_authentication_method(request: TokenRequest, client: Client, resolution: Resolution) -> None:
        method = resolution.method
        if (
            not client.has(TOKEN_ENDPOINT_AUTH_METHOD)
            or client.get(TOKEN_ENDPOINT_AUTH_METHOD) not in method.supported_methods()
        ):
            raise ClientSchemeMismatch(client.client_id)
        if not method.is_client_authenticated(client, resolution.credentials, request):
            raise CredentialInvalid(client.client_id)

    async def __call__(self, scope: dict[str, Any], receive: Any, send: Any) -> None:
        if scope["type"] != "http" or self._is_exempt(scope.get("path", "")):
            await self._app(scope, receive, send)
            return

        try:
            body = await self._read_body(receive)
            authentication = await self.process(TokenRequest.from_scope(scope, body))
        except OAuth2Error as error:
            await self._send_error(error, scope, receive, send)
            return

        replay = self._replay(body, receive)
        if authentication is None:
            await self._app(scope, replay, send)
            return

        state = scope.setdefault("state", {})
        state[STATE_CLIENT] = authentication.client
        state[STATE_AUTHENTICATION_METHOD] = authentication.method
        state[STATE_CLIENT_CREDENTIALS] = authentication.credentials

        token = client_authentication_var.set(authentication)
        try:
            await self._app(scope, replay, send)
        finally:
            client_authentication_var.reset(token)

    async def _read_body(self, receive: Any) -> bytes:
        """Consume the request body so it can be inspected and replayed."""
        chunks: list[bytes] = []
        size = 0
        while True:
            message = await receive()
            if message["type"] != "http.request":
                break
            chunk = message.get("body", b"")
            size += len(chunk)
            if size > self._max_body_size:
                logger.warning("Rejected request body larger than %d bytes", self._max_body_size)
                raise OAuth2Error(413, ERROR_INVALID_REQUEST, MESSAGE_BODY_TOO_LARGE)
            chunks.append(chunk)
            if not message.get("more_body", False):
                break
        return b"".join(chunks)

    @staticmethod
    def _replay(body: bytes, receive: Any) -> Any:
        """Return a ``receive`` callable that yields the buffered body first."""
        sent = False

        async def replay() -> dict[str, Any]:
            nonlocal sent
            if not sent:
                sent = True
                return {"type": "http.request", "body": body, "more_body": False}
            return await receive()

        return replay

    async def _send_error(self, error: OAuth2Error, scope: dict[str, Any], receive: Any, send: Any) -> None:
        """Send the OAuth2 error as a JSON response."""
        headers = {"Cache-Control": "no-store", "Pragma": "no-cache"}
        response = JSONResponse(error.to_dict(), status_code=error.status_code, headers=headers)
        if error.error == ERROR_INVALID_CLIENT:
            for challenge in self._registry.schemes(self._challenge_parameters):
                response.headers.append("WWW-Authenticate", challenge)
        await response(scope, receive, send)
