"""Tests for MethodRegistry and build_registry."""

from __future__ import annotations

from typing import Any

import pytest

from oauth2_client_auth.errors import AmbiguousAuthentication, UnsupportedMethod
from oauth2_client_auth.methods import ClientAssertionJwt, ClientSecretBasic, ClientSecretPost, NoneMethod
from oauth2_client_auth.registry import MethodRegistry, Resolution, build_registry
from oauth2_client_auth.request import TokenRequest
from tests.conftest import SECRET, basic_header, form_request


class StubMethod:
    """Method that matches whenever its marker field is present in the form."""

    def __init__(self, *names: str, marker: str | None = None, challenges: list[str] | None = None) -> None:
        self._names = list(names)
        self._marker = marker or names[0]
        self._challenges = challenges or []
        self.verified: list[str] = []

    def supported_methods(self) -> list[str]:
        return self._names

    def find_client_id_and_credentials(self, request: TokenRequest) -> tuple[str, Any] | None:
        if self._marker not in request.form:
            return None
        return request.form[self._marker], f"{self._marker}-credential"

    def is_client_authenticated(self, client, credentials, request) -> bool:
        self.verified.append(client.client_id)
        return True

    def schemes_parameters(self) -> list[str]:
        return self._challenges

    def check_client_configuration(self, command_parameters, validated_parameters):
        return validated_parameters


class TestRegistration:
    def test_list_preserves_registration_order(self):
        registry = MethodRegistry([NoneMethod(), ClientSecretPost(), ClientSecretBasic("r")])
        assert registry.list() == ["none", "client_secret_post", "client_secret_basic"]

    def test_has(self, registry):
        assert registry.has("none")
        assert registry.has("client_secret_post")
        assert not registry.has("client_secret_basic")

    def test_get_returns_instance(self):
        post = ClientSecretPost()
        registry = MethodRegistry([NoneMethod(), post])
        assert registry.get("client_secret_post") is post

    def test_get_unknown_raises_with_valid_names(self, registry):
        with pytest.raises(UnsupportedMethod) as exc_info:
            registry.get("client_secret_basic")
        assert exc_info.value.valid_names == ["none", "client_secret_post"]
        assert 'method "client_secret_basic" is not supported' in str(exc_info.value)
        assert "none, client_secret_post" in str(exc_info.value)

    def test_unsupported_method_is_lookup_error(self, registry):
        with pytest.raises(LookupError):
            registry.get("nope")

    def test_alias_names_share_one_instance(self):
        assertion = ClientAssertionJwt()
        registry = MethodRegistry([assertion])
        assert registry.list() == ["client_secret_jwt", "private_key_jwt"]
        assert registry.get("client_secret_jwt") is registry.get("private_key_jwt")
        assert registry.all() == [assertion]

    def test_all_is_deduplicated_in_order(self):
        none, post, assertion = NoneMethod(), ClientSecretPost(), ClientAssertionJwt()
        registry = MethodRegistry([none, assertion, post])
        assert registry.all() == [none, assertion, post]
        assert len(registry) == 3

    def test_duplicate_name_rejected(self):
        registry = MethodRegistry([ClientSecretPost()])
        with pytest.raises(ValueError, match="already registered"):
            registry.add(ClientSecretPost())
        assert len(registry.all()) == 1

    def test_method_without_names_rejected(self):
        with pytest.raises(ValueError, match="does not declare"):
            MethodRegistry().add(_nameless())

    def test_frozen_registry_rejects_add(self, registry):
        assert registry.frozen
        with pytest.raises(RuntimeError, match="frozen"):
            registry.add(ClientSecretBasic("r"))

    def test_listing_is_idempotent(self, full_registry):
        assert full_registry.list() == full_registry.list()
        assert full_registry.all() == full_registry.all()
        first = full_registry.all()
        first.clear()
        assert len(full_registry.all()) == 3

    def test_contains(self, registry):
        assert "none" in registry
        assert "private_key_jwt" not in registry


def _nameless() -> StubMethod:
    method = StubMethod("placeholder")
    method._names = []
    return method


class TestResolution:
    def test_no_markers_resolves_to_nothing(self, registry):
        assert registry.find_client_id_and_credentials(form_request()) is None

    def test_unrelated_fields_resolve_to_nothing(self, registry):
        assert registry.find_client_id_and_credentials(form_request(grant_type="client_credentials")) is None

    def test_client_id_only_resolves_to_none_method(self, registry):
        """A body with only client_id resolves to the none method."""
        resolution = registry.find_client_id_and_credentials(form_request(client_id="abc"))
        assert resolution is not None
        assert resolution.client_id == "abc"
        assert isinstance(resolution.method, NoneMethod)
        assert resolution.credentials is None

    def test_client_id_and_secret_resolves_to_post(self, registry):
        """A body with client_id and client_secret resolves to client_secret_post."""
        resolution = registry.find_client_id_and_credentials(form_request(client_id="abc", client_secret=SECRET))
        assert resolution == Resolution("abc", registry.get("client_secret_post"), SECRET)

    def test_credentialed_method_wins_over_none_registered_after(self):
        registry = MethodRegistry([NoneMethod(), ClientSecretPost()])
        resolution = registry.find_client_id_and_credentials(form_request(client_id="abc", client_secret=SECRET))
        assert isinstance(resolution.method, ClientSecretPost)

    def test_credentialed_method_wins_over_none_registered_before(self):
        registry = MethodRegistry([ClientSecretPost(), NoneMethod()])
        resolution = registry.find_client_id_and_credentials(form_request(client_id="abc", client_secret=SECRET))
        assert isinstance(resolution.method, ClientSecretPost)
        assert resolution.credentials == SECRET

    def test_none_with_basic_header_resolves_to_basic(self, full_registry):
        request = form_request(headers=basic_header("abc", SECRET), client_id="abc")
        resolution = full_registry.find_client_id_and_credentials(request)
        assert isinstance(resolution.method, ClientSecretBasic)
        assert resolution.client_id == "abc"
        assert resolution.credentials == SECRET

    def test_credentialed_client_id_replaces_none_client_id(self, full_registry):
        request = form_request(headers=basic_header("from-header", SECRET), client_id="from-body")
        resolution = full_registry.find_client_id_and_credentials(request)
        assert resolution.client_id == "from-header"

    def test_basic_header_only(self, full_registry):
        resolution = full_registry.find_client_id_and_credentials(form_request(headers=basic_header("abc", SECRET)))
        assert isinstance(resolution.method, ClientSecretBasic)

    def test_basic_header_and_body_secret_is_ambiguous(self, full_registry):
        """A Basic header and a body secret for the same client are ambiguous."""
        request = form_request(headers=basic_header("abc", SECRET), client_id="abc", client_secret=SECRET)
        with pytest.raises(AmbiguousAuthentication) as exc_info:
            full_registry.find_client_id_and_credentials(request)
        assert exc_info.value.first == "client_secret_post"
        assert exc_info.value.second == "client_secret_basic"

    def test_ambiguity_detected_across_non_adjacent_methods(self):
        registry = MethodRegistry([StubMethod("alpha"), NoneMethod(), StubMethod("beta")])
        with pytest.raises(AmbiguousAuthentication):
            registry.find_client_id_and_credentials(form_request(alpha="a", client_id="x", beta="b"))

    @pytest.mark.parametrize(
        "order",
        [
            ("none", "alpha", "beta"),
            ("alpha", "none", "beta"),
            ("alpha", "beta", "none"),
        ],
    )
    def test_none_plus_two_credentialed_methods_is_ambiguous(self, order):
        factories = {"none": NoneMethod, "alpha": lambda: StubMethod("alpha"), "beta": lambda: StubMethod("beta")}
        registry = MethodRegistry([factories[name]() for name in order])
        with pytest.raises(AmbiguousAuthentication):
            registry.find_client_id_and_credentials(form_request(client_id="x", alpha="a", beta="b"))

    def test_scan_does_not_short_circuit(self):
        calls: list[str] = []

        class Recording(StubMethod):
            def find_client_id_and_credentials(self, request):
                calls.append(self._names[0])
                return super().find_client_id_and_credentials(request)

        registry = MethodRegistry([Recording("alpha"), Recording("beta"), Recording("gamma")])
        resolution = registry.find_client_id_and_credentials(form_request(alpha="a"))
        assert resolution.client_id == "a"
        assert calls == ["alpha", "beta", "gamma"]

    def test_ambiguity_logs_warning(self, full_registry, caplog):
        request = form_request(headers=basic_header("abc", SECRET), client_id="abc", client_secret=SECRET)
        with caplog.at_level("WARNING", logger="oauth2_client_auth.registry"):
            with pytest.raises(AmbiguousAuthentication):
                full_registry.find_client_id_and_credentials(request)
        assert any("Ambiguous client authentication" in r.message for r in caplog.records)
        assert not any(SECRET in r.getMessage() for r in caplog.records)


class TestIsClientAuthenticated:
    def test_valid_credentials(self, registry, post_client):
        request = form_request(client_id="abc", client_secret=SECRET)
        method = registry.get("client_secret_post")
        assert registry.is_client_authenticated(request, post_client, method, SECRET)

    def test_wrong_credentials(self, registry, post_client):
        request = form_request(client_id="abc", client_secret="nope")
        assert not registry.is_client_authenticated(request, post_client, registry.get("client_secret_post"), "nope")

    def test_method_not_allowed_for_client(self, full_registry, basic_client):
        request = form_request(client_id="abc", client_secret=SECRET)
        method = full_registry.get("client_secret_post")
        assert not full_registry.is_client_authenticated(request, basic_client, method, SECRET)

    def test_expired_credentials(self, registry, expired_client):
        request = form_request(client_id="abc", client_secret=SECRET)
        method = registry.get("client_secret_post")
        assert not registry.is_client_authenticated(request, expired_client, method, SECRET)

    def test_expiry_checked_before_method(self, expired_client):
        method = StubMethod("client_secret_post")
        registry = MethodRegistry([method])
        assert not registry.is_client_authenticated(form_request(), expired_client, method, SECRET)
        assert method.verified == []


class TestSchemes:
    def test_raw_schemes_parameters(self, full_registry):
        assert full_registry.schemes_parameters() == ['Basic realm="test-realm",charset="UTF-8"']

    def test_schemes_without_extra_parameters(self, full_registry):
        assert full_registry.schemes() == ['Basic realm="test-realm",charset="UTF-8"']

    def test_parameterized_scheme_appends_with_comma(self, full_registry):
        assert full_registry.schemes({"error": "invalid_client", "max_age": 30}) == [
            'Basic realm="test-realm",charset="UTF-8",error="invalid_client",max_age=30'
        ]

    def test_bare_scheme_appends_with_space_then_comma(self):
        registry = MethodRegistry([StubMethod("bearer", challenges=["Bearer"])])
        assert registry.schemes({"realm": "api", "error": "invalid_token"}) == [
            'Bearer realm="api",error="invalid_token"'
        ]

    def test_parameter_order_preserved(self):
        registry = MethodRegistry([StubMethod("bearer", challenges=["Bearer"])])
        assert registry.schemes({"b": "2", "a": "1"}) == ['Bearer b="2",a="1"']

    def test_boolean_values_are_unquoted(self):
        registry = MethodRegistry([StubMethod("bearer", challenges=["Bearer"])])
        assert registry.schemes({"required": True}) == ["Bearer required=true"]

    def test_schemes_collected_from_all_methods_in_order(self):
        registry = MethodRegistry(
            [
                StubMethod("a", challenges=["Alpha x=1"]),
                NoneMethod(),
                StubMethod("b", challenges=["Beta", "Gamma"]),
            ]
        )
        assert registry.schemes({"k": "v"}) == ['Alpha x=1,k="v"', 'Beta k="v"', 'Gamma k="v"']

    def test_registry_without_challenges(self, registry):
        assert registry.schemes({"k": "v"}) == []


class TestBuildRegistry:
    def test_defaults(self):
        registry = build_registry()
        assert registry.list() == ["none", "client_secret_basic", "client_secret_post"]
        assert registry.frozen

    def test_realm_is_used(self):
        registry = build_registry(["client_secret_basic"], realm="tokens")
        assert registry.schemes() == ['Basic realm="tokens",charset="UTF-8"']

    def test_secret_lifetime_is_forwarded(self):
        registry = build_registry(["client_secret_post"], secret_lifetime=3600)
        assert registry.get("client_secret_post").secret_lifetime == 3600

    def test_jwt_aliases_share_instance(self):
        registry = build_registry(["client_secret_jwt", "none", "private_key_jwt"])
        assert registry.list() == ["client_secret_jwt", "private_key_jwt", "none"]
        assert len(registry.all()) == 2

    def test_single_jwt_name_enables_only_that_name(self):
        registry = build_registry(["none", "client_secret_jwt"])
        assert registry.list() == ["none", "client_secret_jwt"]
        assert "private_key_jwt" not in registry
        assert registry.get("client_secret_jwt").supported_methods() == ["client_secret_jwt"]

    def test_unknown_method(self):
        with pytest.raises(UnsupportedMethod, match="tls_client_auth"):
            build_registry(["none", "tls_client_auth"])

    def test_duplicate_method(self):
        with pytest.raises(ValueError, match="already registered"):
            build_registry(["none", "none"])

    def test_empty_method_list(self):
        with pytest.raises(ValueError, match="At least one"):
            build_registry([])

    def test_negative_lifetime(self):
        with pytest.raises(ValueError, match="at least 0"):
            build_registry(secret_lifetime=-1)
