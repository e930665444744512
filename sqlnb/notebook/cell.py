"""Runtime cell models for the notebook editor.

A Cell is the unit the editor works with: markdown or SQL text, or an
image/file attachment. Execution results arrive separately from the SQL
collaborator as CellResult records keyed by cell id.
"""

from __future__ import annotations

import json
import uuid
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator
from pydantic.alias_generators import to_camel

_CAMEL = {"alias_generator": to_camel, "populate_by_name": True}


def generate_cell_id() -> str:
    """Generate a cell ID: 'cell_' + 8 hex chars from uuid4."""
    return "cell_" + uuid.uuid4().hex[:8]


class CellType(StrEnum):
    MARKDOWN = "markdown"
    SQL = "sql"
    IMAGE = "image"
    FILE = "file"

    @property
    def is_attachment(self) -> bool:
        return self in (CellType.IMAGE, CellType.FILE)


class ImageDisplayConfig(BaseModel):
    model_config = _CAMEL

    width: str | int | None = None
    height: str | int | None = None
    aspect_ratio: Literal["16:9", "4:3", "1:1", "3:2", "original"] | None = None
    alignment: Literal["left", "center", "right"] | None = None


class Attachment(BaseModel):
    model_config = _CAMEL

    id: str = Field(default_factory=lambda: "att_" + uuid.uuid4().hex[:8])
    type: Literal["image", "file", "url"]
    url: str
    filename: str | None = None
    mime_type: str | None = None
    size: int | None = None
    display_config: ImageDisplayConfig | None = None
    metadata: dict[str, Any] | None = None

    def to_raw(self) -> str:
        """JSON encoding stored as a block's raw content."""
        return self.model_dump_json(by_alias=True, exclude_none=True)


class TextContent(BaseModel):
    model_config = {"extra": "forbid"}

    text: str = ""


def parse_attachment(raw: str) -> Attachment:
    """Parse the JSON encoding of an attachment. Raises ValueError if it is not one."""
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Attachment content is not JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValueError("Attachment content must be a JSON object")
    return Attachment.model_validate(data)


class CellMetadata(BaseModel):
    model_config = _CAMEL

    executed: bool = False
    execution_time_ms: int | None = None
    result_count: int | None = None


class Cell(BaseModel):
    model_config = _CAMEL

    id: str = Field(default_factory=generate_cell_id)
    type: CellType = CellType.MARKDOWN
    content: TextContent | Attachment = Field(default_factory=TextContent)
    order: int = Field(default=0, ge=0)
    metadata: CellMetadata | None = None

    @model_validator(mode="before")
    @classmethod
    def _coerce_raw_content(cls, data: Any) -> Any:
        """Accept a bare string as content: text for markdown/sql, attachment JSON otherwise."""
        if not isinstance(data, dict) or not isinstance(data.get("content"), str):
            return data
        data = dict(data)
        raw = data["content"]
        if CellType(data.get("type", CellType.MARKDOWN)).is_attachment:
            data["content"] = parse_attachment(raw)
        else:
            data["content"] = TextContent(text=raw)
        return data

    @model_validator(mode="after")
    def _content_matches_type(self) -> Cell:
        if self.type.is_attachment and not isinstance(self.content, Attachment):
            raise ValueError(f"{self.type} cell requires attachment content")
        if not self.type.is_attachment and not isinstance(self.content, TextContent):
            raise ValueError(f"{self.type} cell requires text content")
        return self

    @property
    def raw(self) -> str:
        """The single-string form of the content, as persisted in a block."""
        if isinstance(self.content, Attachment):
            return self.content.to_raw()
        return self.content.text


class CellResult(BaseModel):
    """One query result from the SQL execution collaborator."""

    model_config = _CAMEL

    cell_id: str
    data: list[dict[str, Any]] = Field(default_factory=list)
    columns: list[str] = Field(default_factory=list)
    executed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    execution_time_ms: int = 0
    error: str | None = None

    @property
    def row_count(self) -> int:
        return len(self.data)
