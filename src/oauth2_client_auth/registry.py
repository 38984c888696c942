"""MethodRegistry: the ordered set of supported methods and request resolution."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from oauth2_client_auth.client import Client
from oauth2_client_auth.constants import (
    CLIENT_SECRET_BASIC,
    CLIENT_SECRET_JWT,
    CLIENT_SECRET_POST,
    NONE,
    PRIVATE_KEY_JWT,
    TOKEN_ENDPOINT_AUTH_METHOD,
)
from oauth2_client_auth.errors import AmbiguousAuthentication, UnsupportedMethod
from oauth2_client_auth.methods import (
    AuthenticationMethod,
    ClientAssertionJwt,
    ClientSecretBasic,
    ClientSecretPost,
    NoneMethod,
    is_none_method,
)
from oauth2_client_auth.request import TokenRequest

logger = logging.getLogger(__name__)

DEFAULT_METHODS = (NONE, CLIENT_SECRET_BASIC, CLIENT_SECRET_POST)


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving a request: who claims to be calling, and how."""

    client_id: str
    method: AuthenticationMethod
    credentials: Any


class MethodRegistry:
    """Holds authentication methods indexed by the scheme names they declare.

    Methods are evaluated in registration order. The registry is populated at
    startup; after :meth:`freeze` it is read-only and safe to share between
    concurrently handled requests.
    """

    def __init__(self, methods: Iterable[AuthenticationMethod] | None = None) -> None:
        self._methods: list[AuthenticationMethod] = []
        self._names: dict[str, AuthenticationMethod] = {}
        self._frozen = False
        for method in methods or []:
            self.add(method)

    def add(self, method: AuthenticationMethod) -> None:
        """Register a method under every name it supports.

        Raises:
            ValueError: If one of the names is already bound.
            RuntimeError: If the registry has been frozen.
        """
        if self._frozen:
            raise RuntimeError("Cannot add authentication methods to a frozen registry")
        names = method.supported_methods()
        if not names:
            raise ValueError(f"{type(method).__name__} does not declare any scheme name")
        for name in names:
            if name in self._names:
                raise ValueError(f'Authentication method "{name}" is already registered')
        if not any(existing is method for existing in self._methods):
            self._methods.append(method)
        for name in names:
            self._names[name] = method
        logger.debug("Registered authentication method %s as %s", type(method).__name__, names)

    def freeze(self) -> MethodRegistry:
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def list(self) -> list[str]:
        """All bound scheme names, in registration order."""
        return list(self._names)

    def has(self, name: str) -> bool:
        return name in self._names

    def get(self, name: str) -> AuthenticationMethod:
        """Return the method bound to ``name``.

        Raises:
            UnsupportedMethod: If no method answers to ``name``.
        """
        try:
            return self._names[name]
        except KeyError:
            raise UnsupportedMethod(name, self.list()) from None

    def all(self) -> list[AuthenticationMethod]:
        """Registered method instances, de-duplicated, in registration order."""
        return list(self._methods)

    def find_client_id_and_credentials(self, request: TokenRequest) -> Resolution | None:
        """Try every method against the request and adjudicate the matches.

        Every method is consulted so that a request carrying two credentialed
        presentations is always detected. A ``none`` match never conflicts:
        any credentialed match takes precedence over it.

        Returns:
            The winning :class:`Resolution`, or ``None`` if nothing matched.

        Raises:
            AmbiguousAuthentication: If two credentialed methods matched.
        """
        resolution: Resolution | None = None
        for method in self._methods:
            found = method.find_client_id_and_credentials(request)
            if found is None:
                continue
            client_id, credentials = found
            if resolution is None:
                resolution = Resolution(client_id, method, credentials)
                continue

            if not is_none_method(method) and not is_none_method(resolution.method):
                first = resolution.method.supported_methods()[0]
                second = method.supported_methods()[0]
                logger.warning("Ambiguous client authentication: both %s and %s matched", first, second)
                raise AmbiguousAuthentication(first, second)
            if not is_none_method(method):
                resolution = Resolution(client_id, method, credentials)

        if resolution is not None:
            logger.debug(
                "Resolved client_id=%s via %s",
                resolution.client_id,
                resolution.method.supported_methods()[0],
            )
        return resolution

    def is_client_authenticated(
        self,
        request: TokenRequest,
        client: Client,
        method: AuthenticationMethod,
        credentials: Any,
    ) -> bool:
        """Verify credentials already resolved for ``client``.

        The client must be registered for one of the method's scheme names and
        its credentials must not have expired before the method's own check
        runs. Endpoints that resolve clients themselves can reuse this without
        going through the middleware.
        """
        if client.get(TOKEN_ENDPOINT_AUTH_METHOD) not in method.supported_methods():
            return False
        if client.are_client_credentials_expired():
            return False
        return method.is_client_authenticated(client, credentials, request)

    def schemes_parameters(self) -> list[str]:
        schemes: list[str] = []
        for method in self._methods:
            schemes.extend(method.schemes_parameters())
        return schemes

    def schemes(self, additional_parameters: Mapping[str, Any] | None = None) -> list[str]:
        """Challenge strings for ``WWW-Authenticate``, decorated with extra parameters."""
        return [_append_parameters(scheme, additional_parameters or {}) for scheme in self.schemes_parameters()]

    def __len__(self) -> int:
        return len(self._methods)

    def __contains__(self, name: object) -> bool:
        return name in self._names


def _format_value(value: Any) -> str:
    if isinstance(value, str):
        return f'"{value}"'
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _append_parameters(scheme: str, parameters: Mapping[str, Any]) -> str:
    # A scheme with a space already carries parameters, so new ones follow a comma
    add_comma = " " in scheme
    for key, value in parameters.items():
        separator = "," if add_comma else " "
        scheme = f"{scheme}{separator}{key}={_format_value(value)}"
        add_comma = True
    return scheme


def build_registry(
    methods: Iterable[str] | None = None,
    *,
    realm: str = "oauth2",
    secret_lifetime: int = 0,
    assertion_audience: str | None = None,
) -> MethodRegistry:
    """Build a frozen registry from scheme names.

    Args:
        methods: Scheme names to enable, in evaluation order. Defaults to
            ``none``, ``client_secret_basic`` and ``client_secret_post``.
        realm: Realm advertised by ``client_secret_basic``.
        secret_lifetime: Lifetime of generated secrets in seconds (0 = unlimited).
        assertion_audience: Expected ``aud`` of JWT client assertions.

    Raises:
        UnsupportedMethod: On an unknown scheme name.
        ValueError: On duplicate names or invalid settings.
    """
    names = list(DEFAULT_METHODS if methods is None else methods)
    if not names:
        raise ValueError("At least one authentication method must be enabled")
    for index, name in enumerate(names):
        if name in names[:index]:
            raise ValueError(f'Authentication method "{name}" is already registered')
    if secret_lifetime < 0:
        raise ValueError("The secret lifetime must be at least 0 (= unlimited).")

    registry = MethodRegistry()
    jwt_names = [name for name in names if name in (CLIENT_SECRET_JWT, PRIVATE_KEY_JWT)]
    assertion: ClientAssertionJwt | None = None
    for name in names:
        if name == NONE:
            registry.add(NoneMethod())
        elif name == CLIENT_SECRET_POST:
            registry.add(ClientSecretPost(secret_lifetime))
        elif name == CLIENT_SECRET_BASIC:
            registry.add(ClientSecretBasic(realm, secret_lifetime))
        elif name in (CLIENT_SECRET_JWT, PRIVATE_KEY_JWT):
            # One instance serves the enabled JWT names, and only those
            if assertion is None:
                assertion = ClientAssertionJwt(assertion_audience, methods=jwt_names, secret_lifetime=secret_lifetime)
                registry.add(assertion)
        else:
            valid = [NONE, CLIENT_SECRET_BASIC, CLIENT_SECRET_POST, CLIENT_SECRET_JWT, PRIVATE_KEY_JWT]
            raise UnsupportedMethod(name, valid)
    return registry.freeze()
