"""Shared test fixtures for oauth2-client-auth tests."""

from __future__ import annotations

import base64
import time

import pytest

from oauth2_client_auth.client import Client, InMemoryClientRepository
from oauth2_client_auth.methods import ClientSecretBasic, ClientSecretPost, NoneMethod
from oauth2_client_auth.registry import MethodRegistry
from oauth2_client_auth.request import TokenRequest

SECRET = "s3cr3t"

# ---------------------------------------------------------------------------
# Request helpers
# ---------------------------------------------------------------------------


def form_request(headers: dict[str, str] | None = None, **fields: str) -> TokenRequest:
    """Build a token request with a form-encoded body."""
    return TokenRequest(headers=dict(headers or {}), form=dict(fields))


def basic_header(client_id: str, secret: str) -> dict[str, str]:
    encoded = base64.b64encode(f"{client_id}:{secret}".encode()).decode("ascii")
    return {"authorization": f"Basic {encoded}"}


# ---------------------------------------------------------------------------
# Fixtures: clients and registries
# ---------------------------------------------------------------------------


@pytest.fixture
def post_client() -> Client:
    """Client "abc" authenticating with client_secret_post."""
    return Client(
        client_id="abc",
        parameters={"token_endpoint_auth_method": "client_secret_post", "client_secret": SECRET},
    )


@pytest.fixture
def basic_client() -> Client:
    """Client "abc" authenticating with client_secret_basic."""
    return Client(
        client_id="abc",
        parameters={"token_endpoint_auth_method": "client_secret_basic", "client_secret": SECRET},
    )


@pytest.fixture
def public_client() -> Client:
    """Public client "pub" using the none method."""
    return Client(client_id="pub", parameters={"token_endpoint_auth_method": "none"})


@pytest.fixture
def expired_client() -> Client:
    return Client(
        client_id="abc",
        parameters={
            "token_endpoint_auth_method": "client_secret_post",
            "client_secret": SECRET,
            "client_secret_expires_at": int(time.time()) - 60,
        },
    )


@pytest.fixture
def repository(post_client: Client, public_client: Client) -> InMemoryClientRepository:
    return InMemoryClientRepository([post_client, public_client])


@pytest.fixture
def registry() -> MethodRegistry:
    """none + client_secret_post, the two-method registry of the basic scenarios."""
    return MethodRegistry([NoneMethod(), ClientSecretPost()]).freeze()


@pytest.fixture
def full_registry() -> MethodRegistry:
    """none + client_secret_post + client_secret_basic."""
    return MethodRegistry([NoneMethod(), ClientSecretPost(), ClientSecretBasic("test-realm")]).freeze()
