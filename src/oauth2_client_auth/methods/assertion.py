"""JWT client assertions: ``client_secret_jwt`` and ``private_key_jwt`` (RFC 7523)."""

from __future__ import annotations

import logging
from typing import Any

import jwt as pyjwt

from oauth2_client_auth.client import Client
from oauth2_client_auth.constants import (
    CLIENT_ASSERTION_FIELD,
    CLIENT_ASSERTION_TYPE_FIELD,
    CLIENT_ID_FIELD,
    CLIENT_SECRET,
    CLIENT_SECRET_JWT,
    JWT_BEARER_ASSERTION_TYPE,
    PRIVATE_KEY_JWT,
    PUBLIC_KEY,
    TOKEN_ENDPOINT_AUTH_METHOD,
)
from oauth2_client_auth.methods.protocol import AuthenticationMethod
from oauth2_client_auth.methods.secret import SharedSecretMethod
from oauth2_client_auth.request import TokenRequest

logger = logging.getLogger(__name__)

HMAC_ALGORITHMS = ["HS256", "HS384", "HS512"]
ASYMMETRIC_ALGORITHMS = ["RS256", "RS384", "RS512", "PS256", "PS384", "PS512", "ES256", "ES384", "ES512", "EdDSA"]
JWT_METHODS = (CLIENT_SECRET_JWT, PRIVATE_KEY_JWT)


class ClientAssertionJwt(SharedSecretMethod):
    """Authenticates clients with a signed JWT sent as ``client_assertion``.

    One instance answers to every enabled JWT scheme name; the client's
    registered ``token_endpoint_auth_method`` selects the key and allowed
    algorithms.

    Args:
        audience: Expected ``aud`` claim, usually the token endpoint URL.
            When ``None`` the audience is not checked.
        methods: Scheme names this instance answers to, a non-empty subset of
            ``client_secret_jwt`` and ``private_key_jwt``. Defaults to both.
        secret_lifetime: Seconds a generated ``client_secret_jwt`` secret
            stays valid, 0 for unlimited.
        leeway: Clock skew tolerated on ``exp``/``nbf``/``iat``, in seconds.
    """

    def __init__(
        self,
        audience: str | None = None,
        *,
        methods: list[str] | None = None,
        secret_lifetime: int = 0,
        leeway: int = 0,
    ) -> None:
        super().__init__(secret_lifetime)
        names = list(JWT_METHODS if methods is None else methods)
        if not names or any(name not in JWT_METHODS for name in names):
            raise ValueError(f"JWT assertion methods must be a non-empty subset of {list(JWT_METHODS)}, got {names}")
        self._methods = list(dict.fromkeys(names))
        self._audience = audience
        self._leeway = leeway

    def supported_methods(self) -> list[str]:
        return list(self._methods)

    def find_client_id_and_credentials(self, request: TokenRequest) -> tuple[str, Any] | None:
        if request.form.get(CLIENT_ASSERTION_TYPE_FIELD) != JWT_BEARER_ASSERTION_TYPE:
            return None
        assertion = request.form.get(CLIENT_ASSERTION_FIELD)
        if not assertion:
            return None

        try:
            claims = pyjwt.decode(assertion, options={"verify_signature": False})
        except pyjwt.PyJWTError:
            logger.debug("Unparseable client assertion", exc_info=True)
            return None

        subject = claims.get("sub")
        if not isinstance(subject, str) or not subject or claims.get("iss") != subject:
            return None
        client_id = request.form.get(CLIENT_ID_FIELD)
        if client_id is not None and client_id != subject:
            return None
        return subject, assertion

    def is_client_authenticated(self, client: Client, credentials: Any, request: TokenRequest) -> bool:
        if not isinstance(credentials, str):
            return False

        method = client.get(TOKEN_ENDPOINT_AUTH_METHOD)
        if method not in self._methods:
            return False
        if method == CLIENT_SECRET_JWT:
            key = client.get(CLIENT_SECRET)
            algorithms = HMAC_ALGORITHMS
        elif method == PRIVATE_KEY_JWT:
            key = client.get(PUBLIC_KEY)
            algorithms = ASYMMETRIC_ALGORITHMS
        else:
            return False
        if not key:
            return False

        return self._decode_assertion(credentials, key, algorithms, client.client_id) is not None

    def _decode_assertion(
        self, assertion: str, key: str, algorithms: list[str], client_id: str
    ) -> dict[str, Any] | None:
        """Verify signature and claims. Returns None on any error."""
        try:
            kwargs: dict[str, Any] = {
                "jwt": assertion,
                "key": key,
                "algorithms": algorithms,
                "options": {"require": ["exp", "iss", "sub"], "verify_aud": self._audience is not None},
                "issuer": client_id,
                "leeway": self._leeway,
            }
            if self._audience is not None:
                kwargs["audience"] = self._audience
            claims = pyjwt.decode(**kwargs)
        except (pyjwt.PyJWTError, ValueError, TypeError):
            logger.debug("Client assertion validation failed", exc_info=True)
            return None

        if claims.get("sub") != client_id:
            return None
        return claims

    def schemes_parameters(self) -> list[str]:
        return []

    def check_client_configuration(
        self, command_parameters: dict[str, Any], validated_parameters: dict[str, Any]
    ) -> dict[str, Any]:
        # Only the shared-secret variant needs a generated secret
        if command_parameters.get(TOKEN_ENDPOINT_AUTH_METHOD) == CLIENT_SECRET_JWT:
            return super().check_client_configuration(command_parameters, validated_parameters)
        if PUBLIC_KEY in command_parameters:
            validated_parameters[PUBLIC_KEY] = command_parameters[PUBLIC_KEY]
        return validated_parameters


assert isinstance(ClientAssertionJwt(), AuthenticationMethod)
