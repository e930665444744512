"""NotebookDocument: the persisted, schema-versioned notebook representation.

A richer superset of the runtime Notebook, meant to be readable by people and
LLMs alike. Field names are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from sqlnb.notebook.cell import Attachment

FORMAT_TAG = "notebook-v1"
CURRENT_VERSION = "1.0.0"
SUPPORTED_VERSIONS = frozenset({CURRENT_VERSION})


class _WireModel(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class BlockType(StrEnum):
    MARKDOWN = "markdown"
    SQL = "sql"
    CODE = "code"
    IMAGE = "image"
    FILE = "file"
    CHART = "chart"
    TABLE = "table"
    HEADING = "heading"
    DIVIDER = "divider"
    COMMENT = "comment"


KNOWN_BLOCK_TYPES = frozenset(t.value for t in BlockType)


class ExecutionStatus(StrEnum):
    SUCCESS = "success"
    ERROR = "error"
    PENDING = "pending"
    IDLE = "idle"


class DocumentSchema(_WireModel):
    version: str = CURRENT_VERSION
    format: str = FORMAT_TAG


class Representations(_WireModel):
    html: str | None = None
    text: str | None = None
    ast: Any = None


class BlockContent(_WireModel):
    raw: str
    parsed: Any = None
    representations: Representations | None = None
    attachments: list[Attachment] | None = None


class ExecutionInfo(_WireModel):
    executed: bool = False
    executed_at: datetime | None = None
    execution_time_ms: int | None = None
    result_count: int | None = None
    status: ExecutionStatus | None = None
    error_message: str | None = None


class GenerationInfo(_WireModel):
    model: str | None = None
    prompt: str | None = None
    temperature: float | None = None
    generated_at: datetime | None = None
    edited: bool | None = None


class BlockMetadata(_WireModel):
    labels: list[str] | None = None
    intent: str | None = None
    description: str | None = None
    category: str | None = None
    priority: int | None = None
    execution: ExecutionInfo | None = None
    generation: GenerationInfo | None = None
    tags: dict[str, Any] | None = None
    created: datetime
    updated: datetime


class ValidationIssue(_WireModel):
    field: str | None = None
    message: str
    severity: Literal["error", "warning", "info"] = "error"


class BlockState(_WireModel):
    editing: bool = False
    focused: bool = False
    selected: bool = False
    collapsed: bool = False
    hidden: bool = False
    valid: bool = True
    errors: list[ValidationIssue] | None = None
    warnings: list[str] | None = None
    loading: bool = False
    loading_message: str | None = None


class Block(_WireModel):
    id: str
    type: str
    order: int
    parent_id: str | None = None
    depth: int = 0
    content: BlockContent
    metadata: BlockMetadata
    state: BlockState = Field(default_factory=BlockState)
    dependencies: list[str] | None = None
    references: list[str] | None = None


class RelationshipMetadata(_WireModel):
    description: str | None = None
    strength: float | None = None


class BlockRelationship(_WireModel):
    id: str
    type: Literal["depends_on", "references", "derived_from", "transformed_to"]
    source_id: str
    target_id: str
    metadata: RelationshipMetadata | None = None


class ColumnMetadata(_WireModel):
    name: str
    type: str
    nullable: bool | None = None
    description: str | None = None


class TableMetadata(_WireModel):
    name: str
    schema_name: str | None = Field(default=None, alias="schema")
    columns: list[ColumnMetadata] | None = None


class DatabaseContext(_WireModel):
    connection_id: str
    schema_name: str | None = Field(default=None, alias="schema")
    tables: list[TableMetadata] | None = None


class DocumentContext(_WireModel):
    database: DatabaseContext | None = None
    variables: dict[str, Any] | None = None
    dependencies: list[str] | None = None


class Change(_WireModel):
    type: Literal["add", "update", "delete", "reorder"]
    block_id: str
    before: Any = None
    after: Any = None


class VersionHistory(_WireModel):
    version: int
    timestamp: datetime
    author: str | None = None
    changes: list[Change] = Field(default_factory=list)
    checkpoint: bool | None = None


class DocumentMetadata(_WireModel):
    created: datetime
    updated: datetime
    author: str | None = None
    tags: list[str] | None = None
    language: str | None = None
    environment: str | None = None


class NotebookDocument(_WireModel):
    schema_info: DocumentSchema = Field(default_factory=DocumentSchema, alias="schema")
    id: str
    title: str
    description: str | None = None
    blocks: list[Block] = Field(default_factory=list)
    metadata: DocumentMetadata
    context: DocumentContext | None = None
    relationships: list[BlockRelationship] | None = None
    history: list[VersionHistory] | None = None
