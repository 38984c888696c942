"""Client records and the repository protocol used to look them up."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Awaitable
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from oauth2_client_auth.constants import CLIENT_SECRET_EXPIRES_AT

logger = logging.getLogger(__name__)


class Client(BaseModel):
    """A registered client, as read from the client store.

    Attributes:
        client_id: Opaque client identifier.
        parameters: Client metadata (``token_endpoint_auth_method``,
            ``client_secret``, ``client_secret_expires_at``, ...).
        deleted: Whether the client has been marked as deleted.
    """

    model_config = ConfigDict(frozen=True)

    client_id: str = Field(min_length=1)
    parameters: dict[str, Any] = Field(default_factory=dict)
    deleted: bool = False

    def has(self, name: str) -> bool:
        return name in self.parameters

    def get(self, name: str, default: Any = None) -> Any:
        return self.parameters.get(name, default)

    def is_deleted(self) -> bool:
        return self.deleted

    def are_client_credentials_expired(self, now: float | None = None) -> bool:
        """True when ``client_secret_expires_at`` is set, non-zero and in the past.

        ``0`` (or no value) means the credentials never expire.
        """
        expires_at = self.get(CLIENT_SECRET_EXPIRES_AT)
        if not expires_at:
            return False
        current = time.time() if now is None else now
        return float(expires_at) < current

    def mark_as_deleted(self) -> Client:
        return self.model_copy(update={"deleted": True})


@runtime_checkable
class ClientRepository(Protocol):
    """Protocol for client stores.

    ``find`` may be a plain method or a coroutine; the middleware awaits the
    result when it is awaitable.
    """

    def find(self, client_id: str) -> Client | None | Awaitable[Client | None]: ...


class InMemoryClientRepository:
    """Dict-backed client store."""

    def __init__(self, clients: list[Client] | None = None) -> None:
        self._clients: dict[str, Client] = {}
        for client in clients or []:
            self.save(client)

    def save(self, client: Client) -> None:
        self._clients[client.client_id] = client

    def find(self, client_id: str) -> Client | None:
        return self._clients.get(client_id)

    def __len__(self) -> int:
        return len(self._clients)


_CLIENT_LIST = TypeAdapter(list[Client])


class JsonFileClientRepository(InMemoryClientRepository):
    """Client store loaded once from a JSON file holding a list of clients."""

    @classmethod
    def load(cls, path: str | Path) -> JsonFileClientRepository:
        path = Path(path)
        raw = json.loads(path.read_text(encoding="utf-8"))
        clients = _CLIENT_LIST.validate_python(raw)
        logger.info("Loaded %d client(s) from '%s'", len(clients), path)
        return cls(clients)
