"""Token endpoint authentication methods."""

from oauth2_client_auth.methods.assertion import ClientAssertionJwt
from oauth2_client_auth.methods.none import NoneMethod
from oauth2_client_auth.methods.protocol import AuthenticationMethod, is_none_method
from oauth2_client_auth.methods.secret import create_client_secret, secrets_match
from oauth2_client_auth.methods.secret_basic import ClientSecretBasic
from oauth2_client_auth.methods.secret_post import ClientSecretPost

__all__ = [
    "AuthenticationMethod",
    "ClientAssertionJwt",
    "ClientSecretBasic",
    "ClientSecretPost",
    "NoneMethod",
    "create_client_secret",
    "is_none_method",
    "secrets_match",
]
