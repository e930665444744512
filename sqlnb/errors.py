"""Exception taxonomy for the document and persistence layers.

The codec and storage adapters raise these. The file handler catches them and
turns them into ``Result`` diagnostics using each class's ``code``.
"""

from __future__ import annotations


class NotebookError(Exception):
    code = "NOTEBOOK_ERROR"


class FormatError(NotebookError):
    """Text could not be parsed, or a required field is missing or mistyped."""

    code = "FORMAT_ERROR"


class ValidationError(NotebookError):
    """Well-formed document that violates structural invariants."""

    code = "VALIDATION_ERROR"

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__("Invalid document: " + "; ".join(self.errors))


class NotFoundError(NotebookError):
    code = "NOT_FOUND"


class StorageError(NotebookError):
    """The storage backend itself failed."""

    code = "STORAGE_ERROR"


class StorageTimeoutError(StorageError):
    code = "STORAGE_TIMEOUT"
