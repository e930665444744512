"""Result and diagnostic types shared by every layer that must not raise."""

from enum import StrEnum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class Severity(StrEnum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class Diag(BaseModel):
    """One finding: a severity, a stable machine-readable code and a message."""

    severity: Severity
    code: str
    message: str
    hint: str | None = None


class Result(BaseModel, Generic[T]):  # noqa: UP046  pydantic generic models subclass Generic[T]
    """Output paired with diagnostics.

    Persistence and validation surfaces return one of these instead of
    raising. ``data`` may be None when an error diagnostic explains why.
    """

    data: T | None = None
    diagnostics: list[Diag] = Field(default_factory=list)

    def _add(self, severity: Severity, code: str, message: str, hint: str | None) -> None:
        self.diagnostics.append(Diag(severity=severity, code=code, message=message, hint=hint))

    def _messages(self, severity: Severity) -> list[str]:
        return [d.message for d in self.diagnostics if d.severity == severity]

    @property
    def has_errors(self) -> bool:
        return any(d.severity == Severity.ERROR for d in self.diagnostics)

    @property
    def ok(self) -> bool:
        return not self.has_errors

    @property
    def valid(self) -> bool:
        """Alias of ``ok`` for the validator's {valid, errors, warnings} view."""
        return self.ok

    @property
    def errors(self) -> list[str]:
        return self._messages(Severity.ERROR)

    @property
    def warnings(self) -> list[str]:
        return self._messages(Severity.WARNING)

    def error(self, code: str, message: str, *, hint: str | None = None) -> None:
        self._add(Severity.ERROR, code, message, hint)

    def warning(self, code: str, message: str, *, hint: str | None = None) -> None:
        self._add(Severity.WARNING, code, message, hint)

    def info(self, code: str, message: str, *, hint: str | None = None) -> None:
        self._add(Severity.INFO, code, message, hint)

    def extend(self, other: "Result[Any]") -> None:
        """Append another result's diagnostics to this one."""
        self.diagnostics.extend(other.diagnostics)

    def summary(self) -> dict[str, Any]:
        """Flatten to the ``{success, errors?, warnings?}`` shape the editor UI consumes."""
        out: dict[str, Any] = {"success": self.ok}
        if errors := self.errors:
            out["errors"] = errors
        if warnings := self.warnings:
            out["warnings"] = warnings
        return out
