"""Storage adapter interface: opaque text blobs keyed by file name."""

from __future__ import annotations

from abc import ABC, abstractmethod


class StorageAdapter(ABC):
    """Key/text persistence backend.

    Contract shared by every implementation:
    - ``load`` of a key that was never saved returns None, it does not raise.
    - ``delete`` of a missing key is a no-op.
    - ``list`` returns caller-facing keys (no backend-specific prefix).
    - ``save`` overwrites the whole value.
    """

    @abstractmethod
    async def save(self, key: str, text: str) -> None:
        """Store ``text`` under ``key``."""

    @abstractmethod
    async def load(self, key: str) -> str | None:
        """Return the text stored under ``key``, or None."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove ``key`` if present."""

    @abstractmethod
    async def list(self) -> list[str]:
        """Return all stored keys."""
