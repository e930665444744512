"""Directory-backed storage adapter: one file per key."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from urllib.parse import quote, unquote

from sqlnb.errors import StorageError
from sqlnb.storage.base import StorageAdapter

logger = logging.getLogger("sqlnb.storage")

_TMP_SUFFIX = ".tmp"


def _encode(key: str) -> str:
    name = quote(key, safe=" ")
    if name.startswith("."):
        name = "%2E" + name[1:]
    return name


class FileStorageAdapter(StorageAdapter):
    """Stores each key as a file under ``directory``.

    Keys are percent-encoded into file names, so any string (including ones
    containing "/" or starting with ".") is a valid key. An encoded name never
    starts with a dot; that namespace is reserved for in-progress writes,
    which go to ".<name>.tmp" and are then renamed into place.
    """

    def __init__(self, directory: Path) -> None:
        self._directory = directory
        self._directory.mkdir(parents=True, exist_ok=True)

    @property
    def directory(self) -> Path:
        return self._directory

    def _path(self, key: str) -> Path:
        if not key:
            raise StorageError("Storage key must not be empty")
        return self._directory / _encode(key)

    async def save(self, key: str, text: str) -> None:
        path = self._path(key)
        await asyncio.to_thread(self._write, path, text)
        logger.debug("Wrote %s (%d chars)", path.name, len(text))

    @staticmethod
    def _write(path: Path, text: str) -> None:
        tmp_path = path.with_name("." + path.name + _TMP_SUFFIX)
        try:
            tmp_path.write_text(text, encoding="utf-8")
            tmp_path.replace(path)
        except OSError as e:
            raise StorageError(f"Failed to write {path.name}: {e}") from e

    async def load(self, key: str) -> str | None:
        path = self._path(key)
        return await asyncio.to_thread(self._read, path)

    @staticmethod
    def _read(path: Path) -> str | None:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read {path.name}: {e}") from e

    async def delete(self, key: str) -> None:
        path = self._path(key)
        try:
            await asyncio.to_thread(path.unlink, missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to delete {path.name}: {e}") from e

    async def list(self) -> list[str]:
        def _scan() -> list[str]:
            return sorted(
                unquote(p.name)
                for p in self._directory.iterdir()
                if p.is_file() and not p.name.startswith(".")
            )

        try:
            return await asyncio.to_thread(_scan)
        except OSError as e:
            raise StorageError(f"Failed to list {self._directory}: {e}") from e
