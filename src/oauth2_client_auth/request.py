"""TokenRequest: an immutable snapshot of the parts of a request methods inspect."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qsl

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def extract_headers(scope: dict[str, Any]) -> dict[str, str]:
    """Extract headers from ASGI scope as a lowercase-key dict."""
    result: dict[str, str] = {}
    for key_bytes, value_bytes in scope.get("headers", []):
        result[key_bytes.decode("latin-1").lower()] = value_bytes.decode("latin-1")
    return result


def parse_form(headers: dict[str, str], body: bytes) -> dict[str, str]:
    """Decode a form-encoded body. Other content types yield an empty dict.

    Repeated fields keep their first value.
    """
    content_type = headers.get("content-type", "").split(";", 1)[0].strip().lower()
    if content_type != FORM_CONTENT_TYPE or not body:
        return {}
    try:
        pairs = parse_qsl(body.decode("utf-8"), keep_blank_values=True)
    except (UnicodeDecodeError, ValueError):
        return {}
    form: dict[str, str] = {}
    for key, value in pairs:
        form.setdefault(key, value)
    return form


@dataclass(frozen=True)
class TokenRequest:
    """Read-only view of an inbound token endpoint request.

    Attributes:
        method: HTTP method.
        path: Request path.
        headers: Lowercase header names mapped to their values.
        form: Decoded ``application/x-www-form-urlencoded`` body parameters.
    """

    method: str = "POST"
    path: str = "/token"
    headers: dict[str, str] = field(default_factory=dict)
    form: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_scope(cls, scope: dict[str, Any], body: bytes = b"") -> TokenRequest:
        """Build a snapshot from an ASGI HTTP scope and its buffered body."""
        headers = extract_headers(scope)
        return cls(
            method=scope.get("method", "POST"),
            path=scope.get("path", ""),
            headers=headers,
            form=parse_form(headers, body),
        )

    def header(self, name: str, default: str | None = None) -> str | None:
        return self.headers.get(name.lower(), default)
