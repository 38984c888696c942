"""oauth2-client-auth: client authentication for OAuth2 token endpoints."""

from __future__ import annotations

import logging
from typing import Any

from oauth2_client_auth.client import Client, ClientRepository, InMemoryClientRepository, JsonFileClientRepository
from oauth2_client_auth.errors import (
    AmbiguousAuthentication,
    ClientAuthenticationFailed,
    ClientAuthError,
    ClientCredentialsExpired,
    ErrorMapper,
    OAuth2Error,
    UnsupportedMethod,
)
from oauth2_client_auth.methods import (
    AuthenticationMethod,
    ClientAssertionJwt,
    ClientSecretBasic,
    ClientSecretPost,
    NoneMethod,
)
from oauth2_client_auth.middleware import ClientAuthentication, ClientAuthenticationMiddleware, client_authentication_var
from oauth2_client_auth.registry import MethodRegistry, Resolution, build_registry
from oauth2_client_auth.request import TokenRequest
from oauth2_client_auth.server import create_app, serve

__all__ = [
    # Public API
    "build_registry",
    "provision_client",
    "create_app",
    "serve",
    # Building blocks
    "MethodRegistry",
    "Resolution",
    "ClientAuthenticationMiddleware",
    "ClientAuthentication",
    "client_authentication_var",
    "TokenRequest",
    # Methods
    "AuthenticationMethod",
    "NoneMethod",
    "ClientSecretPost",
    "ClientSecretBasic",
    "ClientAssertionJwt",
    # Clients
    "Client",
    "ClientRepository",
    "InMemoryClientRepository",
    "JsonFileClientRepository",
    # Errors
    "ClientAuthError",
    "UnsupportedMethod",
    "AmbiguousAuthentication",
    "ClientAuthenticationFailed",
    "ClientCredentialsExpired",
    "OAuth2Error",
    "ErrorMapper",
]

__version__ = "0.1.0"

logger = logging.getLogger(__name__)


def provision_client(
    registry: MethodRegistry,
    client_id: str,
    token_endpoint_auth_method: str,
    **parameters: Any,
) -> Client:
    """Create the configuration of a new client for the given method.

    The method's ``check_client_configuration`` fills in generated material,
    such as a fresh ``client_secret`` and its ``client_secret_expires_at``.

    Raises:
        UnsupportedMethod: If the registry has no such method.
        ValueError: If ``client_id`` is empty.
    """
    if not client_id:
        raise ValueError("client_id must not be empty")
    method = registry.get(token_endpoint_auth_method)
    command_parameters = {"token_endpoint_auth_method": token_endpoint_auth_method, **parameters}
    validated = method.check_client_configuration(command_parameters, dict(command_parameters))
    logger.info("Provisioned client %s for %s", client_id, token_endpoint_auth_method)
    return Client(client_id=client_id, parameters=validated)
