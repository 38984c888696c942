"""Constants shared across oauth2-client-auth."""

from __future__ import annotations

# Client parameter names (RFC 7591 client metadata)
TOKEN_ENDPOINT_AUTH_METHOD = "token_endpoint_auth_method"
CLIENT_SECRET = "client_secret"
CLIENT_SECRET_EXPIRES_AT = "client_secret_expires_at"
PUBLIC_KEY = "public_key"

# Request form fields
CLIENT_ID_FIELD = "client_id"
CLIENT_SECRET_FIELD = "client_secret"
CLIENT_ASSERTION_FIELD = "client_assertion"
CLIENT_ASSERTION_TYPE_FIELD = "client_assertion_type"
JWT_BEARER_ASSERTION_TYPE = "urn:ietf:params:oauth:client-assertion-type:jwt-bearer"

# Scheme names
NONE = "none"
CLIENT_SECRET_POST = "client_secret_post"
CLIENT_SECRET_BASIC = "client_secret_basic"
CLIENT_SECRET_JWT = "client_secret_jwt"
PRIVATE_KEY_JWT = "private_key_jwt"

# Keys set in scope["state"] on successful authentication
STATE_CLIENT = "client"
STATE_AUTHENTICATION_METHOD = "client_authentication_method"
STATE_CLIENT_CREDENTIALS = "client_credentials"

# OAuth2 error codes
ERROR_INVALID_CLIENT = "invalid_client"
ERROR_INVALID_REQUEST = "invalid_request"

# Externally visible messages
MESSAGE_AUTHENTICATION_FAILED = "Client authentication failed."
MESSAGE_CREDENTIALS_EXPIRED = "Client credentials expired."
MESSAGE_AMBIGUOUS = "Only one authentication method may be used to authenticate the client."
MESSAGE_BODY_TOO_LARGE = "Request body too large."

# Largest token request body buffered for inspection
MAX_BODY_SIZE = 64 * 1024

# Number of random bytes behind a generated client secret (256 bits)
SECRET_BYTES = 32
