"""Storage adapters for .sqlnb files."""

from __future__ import annotations

from sqlnb.config import SqlnbConfig, files_dir
from sqlnb.storage.base import StorageAdapter
from sqlnb.storage.file import FileStorageAdapter
from sqlnb.storage.memory import InMemoryStorageAdapter
from sqlnb.storage.prefixed import PrefixedStorageAdapter

__all__ = [
    "FileStorageAdapter",
    "InMemoryStorageAdapter",
    "PrefixedStorageAdapter",
    "StorageAdapter",
    "build_storage",
]


def build_storage(config: SqlnbConfig) -> StorageAdapter:
    """Create the configured adapter, namespaced by the configured prefix."""
    backend = config.storage.backend
    inner: StorageAdapter
    if backend == "file":
        inner = FileStorageAdapter(files_dir(config))
    elif backend == "memory":
        inner = InMemoryStorageAdapter()
    else:
        raise ValueError(f"Unknown storage backend: {backend!r}")
    if not config.storage.prefix:
        return inner
    return PrefixedStorageAdapter(inner, config.storage.prefix)
