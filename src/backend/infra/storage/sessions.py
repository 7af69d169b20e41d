from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Optional

# Stored sessions are keyed as "<prefix>:<token>".
SESSION_KEY_PREFIX = "murph_user"


def session_key(token: str) -> str:
    return f"{SESSION_KEY_PREFIX}:{token}"


class SessionStorageBackend(ABC):
    """Key/value store holding JSON-serialized users for active sessions."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Return the raw stored value or None."""

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store a raw value, replacing any previous one."""

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Delete a key; missing keys are ignored."""


class InMemorySessionStorageBackend(SessionStorageBackend):
    def __init__(self) -> None:
        self._items: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


session_storage_backend: SessionStorageBackend = InMemorySessionStorageBackend()
