"""In-process storage adapter."""

from __future__ import annotations

from sqlnb.storage.base import StorageAdapter


class InMemoryStorageAdapter(StorageAdapter):
    """Dict-backed adapter for tests and throwaway servers."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    async def save(self, key: str, text: str) -> None:
        self._items[key] = text

    async def load(self, key: str) -> str | None:
        return self._items.get(key)

    async def delete(self, key: str) -> None:
        self._items.pop(key, None)

    async def list(self) -> list[str]:
        return sorted(self._items)
