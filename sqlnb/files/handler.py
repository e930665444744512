""".sqlnb file handler: codec + validator + storage behind named-file operations.

Nothing raised below this layer escapes it; every operation returns a Result
whose diagnostics carry the error kind as their code.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from collections.abc import Awaitable, Mapping
from datetime import UTC, datetime
from typing import Any, TypeVar

from pydantic import BaseModel, Field

from sqlnb.config import DocumentConfig
from sqlnb.core import Result, Severity
from sqlnb.document.codec import decode, document_from_mapping, encode, parse_text, to_text
from sqlnb.document.validator import validate_document
from sqlnb.errors import (
    FormatError,
    NotebookError,
    NotFoundError,
    StorageError,
    StorageTimeoutError,
    ValidationError,
)
from sqlnb.notebook.cell import CellResult
from sqlnb.notebook.notebook import Notebook
from sqlnb.storage.base import StorageAdapter

logger = logging.getLogger("sqlnb.files")

T = TypeVar("T")


def report_error(result: Result[Any], error: NotebookError) -> None:
    """Record an exception as error diagnostics, one per message for validation failures."""
    if isinstance(error, ValidationError):
        for message in error.errors:
            result.error(error.code, message)
    else:
        result.error(error.code, str(error))


def compute_checksum(text: str) -> str:
    """SHA-256 hex digest of the stored text."""
    return hashlib.sha256(text.encode()).hexdigest()


class FileMeta(BaseModel):
    path: str
    last_modified: datetime = Field(default_factory=lambda: datetime.now(UTC))
    checksum: str = ""
    size: int = 0


class SQLNBFileHandler:
    """Saves, loads, deletes and lists notebooks stored as .sqlnb text."""

    def __init__(
        self,
        storage: StorageAdapter,
        *,
        timeout_seconds: float | None = None,
        document: DocumentConfig | None = None,
    ) -> None:
        self._storage = storage
        self._timeout = timeout_seconds
        self._document = document or DocumentConfig()

    @property
    def storage(self) -> StorageAdapter:
        return self._storage

    async def _call(self, op: Awaitable[T], what: str) -> T:
        """Await a storage call under the timeout, normalizing failures to StorageError."""
        try:
            if self._timeout is None:
                return await op
            return await asyncio.wait_for(op, self._timeout)
        except TimeoutError as e:
            raise StorageTimeoutError(f"{what} timed out after {self._timeout}s") from e
        except StorageError:
            raise
        except Exception as e:  # noqa: BLE001
            raise StorageError(f"{what} failed: {e}") from e

    def render(self, notebook: Notebook, results: Mapping[str, CellResult] | None = None) -> str:
        """Encode a notebook to .sqlnb text, renumbering cell orders if they have gaps."""
        if [c.order for c in notebook.sorted_cells()] != list(range(len(notebook.cells))):
            notebook = notebook.model_copy(deep=True)
            notebook.normalize_order()
        document = encode(
            notebook,
            results,
            language=self._document.language,
            environment=self._document.environment,
            author=self._document.author,
        )
        return to_text(document)

    async def save(
        self,
        path: str,
        notebook: Notebook,
        results: Mapping[str, CellResult] | None = None,
    ) -> Result[FileMeta]:
        """Encode, self-check and persist. Storage is untouched if the check fails."""
        result: Result[FileMeta] = Result()
        text = self.render(notebook, results)

        check = self.validate(text)
        if not check.ok:
            logger.warning("Refusing to save %s: %s", path, "; ".join(check.errors))
            report_error(result, ValidationError(check.errors))
            return result

        try:
            await self._call(self._storage.save(path, text), f"Saving {path}")
        except NotebookError as e:
            logger.error("Save failed for %s: %s", path, e)
            result.error(e.code, str(e))
            return result

        result.diagnostics.extend(check.diagnostics)
        meta = FileMeta(path=path, checksum=compute_checksum(text), size=len(text))
        result.data = meta
        logger.info("Saved %s (%d cells, %s)", path, len(notebook.cells), meta.checksum[:12])
        return result

    async def load(self, path: str) -> Result[Notebook]:
        """Fetch, validate and decode a notebook."""
        result: Result[Notebook] = Result()
        try:
            text = await self._call(self._storage.load(path), f"Loading {path}")
        except NotebookError as e:
            result.error(e.code, str(e))
            return result

        if text is None:
            report_error(result, NotFoundError(f"File {path} not found"))
            return result

        try:
            result.data = self._decode_text(text, result)
        except NotebookError as e:
            report_error(result, e)
            logger.warning("Could not load %s: %s", path, e)
        return result

    def _decode_text(self, text: str, result: Result[Notebook]) -> Notebook:
        data = parse_text(text)
        check = validate_document(data)
        result.diagnostics.extend(d for d in check.diagnostics if d.severity != Severity.ERROR)
        if not check.ok:
            raise ValidationError(check.errors)
        return decode(document_from_mapping(data))

    async def delete(self, path: str) -> Result[None]:
        result: Result[None] = Result()
        try:
            await self._call(self._storage.delete(path), f"Deleting {path}")
            logger.info("Deleted %s", path)
        except NotebookError as e:
            result.error(e.code, str(e))
        return result

    async def list(self) -> Result[list[str]]:
        result: Result[list[str]] = Result()
        try:
            result.data = await self._call(self._storage.list(), "Listing files")
        except NotebookError as e:
            result.error(e.code, str(e))
        return result

    def validate(self, text: str) -> Result[dict[str, Any]]:
        """Parse and structurally validate .sqlnb text without touching storage."""
        try:
            data = parse_text(text)
        except FormatError as e:
            result: Result[dict[str, Any]] = Result()
            result.error(e.code, str(e))
            return result
        return validate_document(data)
