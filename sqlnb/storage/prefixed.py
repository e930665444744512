"""Namespaced storage adapter: a prefixed partition of another adapter."""

from __future__ import annotations

from sqlnb.storage.base import StorageAdapter

DEFAULT_PREFIX = "sqlnb_"


class PrefixedStorageAdapter(StorageAdapter):
    """Prefixes every key on the way in and strips it on the way out.

    Lets notebook files share a backing store with other data without
    colliding; ``list`` only reports keys inside the partition.
    """

    def __init__(self, inner: StorageAdapter, prefix: str = DEFAULT_PREFIX) -> None:
        self._inner = inner
        self._prefix = prefix

    @property
    def prefix(self) -> str:
        return self._prefix

    async def save(self, key: str, text: str) -> None:
        await self._inner.save(self._prefix + key, text)

    async def load(self, key: str) -> str | None:
        return await self._inner.load(self._prefix + key)

    async def delete(self, key: str) -> None:
        await self._inner.delete(self._prefix + key)

    async def list(self) -> list[str]:
        keys = await self._inner.list()
        return [k[len(self._prefix) :] for k in keys if k.startswith(self._prefix)]
