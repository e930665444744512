"""Conversion between the runtime Notebook and the NotebookDocument schema,
and between NotebookDocument and its YAML (.sqlnb) and JSON text forms.

encode() is total and never fails. decode(), from_text() and from_json()
raise FormatError on malformed input and never return a partial notebook.
The import_from_* helpers also run the validator and raise ValidationError
for documents that parse but are structurally unacceptable.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from sqlnb.document.models import (
    Block,
    BlockContent,
    BlockMetadata,
    BlockState,
    DocumentMetadata,
    ExecutionInfo,
    ExecutionStatus,
    NotebookDocument,
    Representations,
    ValidationIssue,
)
from sqlnb.document.validator import validate_document
from sqlnb.errors import FormatError, ValidationError
from sqlnb.notebook.cell import Attachment, Cell, CellMetadata, CellResult, CellType, TextContent, parse_attachment
from sqlnb.notebook.notebook import Notebook

logger = logging.getLogger("sqlnb.codec")

SQLNB_HEADER = "# SQL Notebook (.sqlnb)\n# Edit this file directly or use the visual editor\n"

_CELL_TYPES = frozenset(t.value for t in CellType)
_TRAILING_KEYS = ("context", "relationships", "history")


# --- Notebook <-> NotebookDocument ---


def encode(
    notebook: Notebook,
    results: Mapping[str, CellResult] | None = None,
    *,
    language: str | None = None,
    environment: str | None = None,
    author: str | None = None,
) -> NotebookDocument:
    """Project a notebook (plus the latest execution results) onto the document schema."""
    results = results or {}
    blocks = [_cell_to_block(cell, results.get(cell.id), notebook) for cell in notebook.sorted_cells()]
    return NotebookDocument(
        id=notebook.id,
        title=notebook.title,
        blocks=blocks,
        metadata=DocumentMetadata(
            created=notebook.created_at,
            updated=notebook.updated_at,
            author=author,
            language=language,
            environment=environment,
        ),
    )


def _cell_to_block(cell: Cell, result: CellResult | None, notebook: Notebook) -> Block:
    error = result.error if result is not None else None
    executed = bool(cell.metadata and cell.metadata.executed)

    execution: ExecutionInfo | None = None
    if cell.type == CellType.SQL:
        if error:
            status = ExecutionStatus.ERROR
        elif executed:
            status = ExecutionStatus.SUCCESS
        else:
            status = ExecutionStatus.IDLE
        execution = ExecutionInfo(
            executed=executed,
            executed_at=result.executed_at if result is not None else None,
            execution_time_ms=cell.metadata.execution_time_ms if cell.metadata else None,
            result_count=cell.metadata.result_count if cell.metadata else None,
            status=status,
            error_message=error,
        )

    raw = cell.raw
    content = BlockContent(raw=raw)
    if cell.type == CellType.MARKDOWN:
        content.representations = Representations(text=raw)
    if isinstance(cell.content, Attachment):
        content.attachments = [cell.content]

    return Block(
        id=cell.id,
        type=cell.type.value,
        order=cell.order,
        depth=0,
        content=content,
        metadata=BlockMetadata(
            labels=[cell.type.value],
            category="executed" if executed else "draft",
            execution=execution,
            created=notebook.created_at,
            updated=notebook.updated_at,
        ),
        state=BlockState(
            valid=not error,
            errors=[ValidationIssue(message=error, severity="error")] if error else None,
        ),
    )


def decode(document: NotebookDocument | Mapping[str, Any]) -> Notebook:
    """Narrow a document to the runtime Notebook.

    Blocks whose type has no Cell counterpart (chart, table, heading, ...) are
    dropped. Raises FormatError when required fields are missing or mistyped.
    """
    if not isinstance(document, NotebookDocument):
        document = document_from_mapping(document)
    if not document.id:
        raise FormatError("Missing required field: id")
    if not document.title:
        raise FormatError("Missing required field: title")

    cells: list[Cell] = []
    for block in document.blocks:
        if block.type not in _CELL_TYPES:
            logger.debug("Dropping %s block %s: no cell equivalent", block.type, block.id)
            continue
        cells.append(_block_to_cell(block))

    try:
        return Notebook(
            id=document.id,
            title=document.title,
            cells=cells,
            created_at=_aware(document.metadata.created),
            updated_at=_aware(document.metadata.updated),
        )
    except PydanticValidationError as e:
        raise FormatError(_describe(e)) from e


def _block_to_cell(block: Block) -> Cell:
    cell_type = CellType(block.type)
    content: TextContent | Attachment
    if cell_type.is_attachment:
        content = _block_attachment(block)
    else:
        content = TextContent(text=block.content.raw)

    metadata = None
    execution = block.metadata.execution
    if execution is not None and (
        execution.executed or execution.execution_time_ms is not None or execution.result_count is not None
    ):
        metadata = CellMetadata(
            executed=execution.executed,
            execution_time_ms=execution.execution_time_ms,
            result_count=execution.result_count,
        )

    try:
        return Cell(id=block.id, type=cell_type, content=content, order=block.order, metadata=metadata)
    except PydanticValidationError as e:
        raise FormatError(f"Block {block.id}: {_describe(e)}") from e


def _block_attachment(block: Block) -> Attachment:
    try:
        return parse_attachment(block.content.raw)
    except ValueError:
        if block.content.attachments:
            return block.content.attachments[0]
        raise FormatError(f"Block {block.id}: {block.type} block has no readable attachment") from None


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def _describe(error: PydanticValidationError) -> str:
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err["loc"])
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)


def document_from_mapping(data: Mapping[str, Any]) -> NotebookDocument:
    """Build a NotebookDocument from parsed YAML/JSON data. Raises FormatError."""
    try:
        return NotebookDocument.model_validate(data)
    except PydanticValidationError as e:
        raise FormatError(f"Invalid document: {_describe(e)}") from e


# --- NotebookDocument <-> YAML ---


class _SqlnbDumper(yaml.SafeDumper):
    pass


def _represent_str(dumper: yaml.SafeDumper, value: str) -> yaml.ScalarNode:
    # Literal blocks keep SQL and markdown readable; PyYAML falls back to
    # quoted style on its own when a literal block cannot hold the value.
    if "\n" in value:
        return dumper.represent_scalar("tag:yaml.org,2002:str", value, style="|")
    return dumper.represent_str(value)


_SqlnbDumper.add_representer(str, _represent_str)


def _document_mapping(document: NotebookDocument) -> dict[str, Any]:
    """Dump the document with the .sqlnb key order."""
    dumped = document.model_dump(mode="json", by_alias=True, exclude_none=True)
    out: dict[str, Any] = {
        "schema": dumped["schema"],
        "id": dumped["id"],
        "title": dumped["title"],
    }
    if "description" in dumped:
        out["description"] = dumped["description"]
    out["metadata"] = dumped["metadata"]
    out["blocks"] = [_block_mapping(b) for b in dumped["blocks"]]
    for key in _TRAILING_KEYS:
        if key in dumped:
            out[key] = dumped[key]
    return out


def _block_mapping(block: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {
        "id": block["id"],
        "type": block["type"],
        "order": block["order"],
        "depth": block["depth"],
    }
    if "parentId" in block:
        out["parentId"] = block["parentId"]
    # raw is the source of truth; parsed/representations/attachments are caches
    out["content"] = {"raw": block["content"]["raw"]}

    metadata = dict(block["metadata"])
    out["metadata"] = {"created": metadata.pop("created"), "updated": metadata.pop("updated"), **metadata}
    out["state"] = block["state"]
    for key in ("dependencies", "references"):
        if key in block:
            out[key] = block[key]
    return out


def to_text(document: NotebookDocument) -> str:
    """Serialize to .sqlnb text: a comment header followed by YAML."""
    body = yaml.dump(
        _document_mapping(document),
        Dumper=_SqlnbDumper,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        width=float("inf"),
    )
    return f"{SQLNB_HEADER}\n{body}"


def parse_text(text: str) -> dict[str, Any]:
    """Strip the comment header and parse .sqlnb YAML into plain data."""
    lines = text.splitlines()
    while lines and (lines[0].startswith("#") or not lines[0].strip()):
        lines.pop(0)
    try:
        data = yaml.safe_load("\n".join(lines))
    except yaml.YAMLError as e:
        raise FormatError(f"YAML parsing failed: {e}") from e
    if not isinstance(data, dict):
        raise FormatError("Invalid YAML structure: expected a mapping at the top level")
    return data


def from_text(text: str) -> NotebookDocument:
    return document_from_mapping(parse_text(text))


# --- NotebookDocument <-> JSON ---


def to_json(document: NotebookDocument, *, pretty: bool = True) -> str:
    data = document.model_dump(mode="json", by_alias=True, exclude_none=True)
    if pretty:
        return json.dumps(data, indent=2, ensure_ascii=False)
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


def parse_json(text: str) -> dict[str, Any]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise FormatError(f"JSON parsing failed: {e}") from e
    if not isinstance(data, dict):
        raise FormatError("Invalid JSON structure: expected an object at the top level")
    return data


def from_json(text: str) -> NotebookDocument:
    return document_from_mapping(parse_json(text))


# --- Import / export ---


def export_as_json(
    notebook: Notebook,
    results: Mapping[str, CellResult] | None = None,
    *,
    pretty: bool = True,
    **options: str | None,
) -> str:
    return to_json(encode(notebook, results, **options), pretty=pretty)


def export_as_yaml(
    notebook: Notebook,
    results: Mapping[str, CellResult] | None = None,
    **options: str | None,
) -> str:
    return to_text(encode(notebook, results, **options))


def _load_checked(data: dict[str, Any]) -> Notebook:
    """Gate parsed data through the validator before decoding it.

    Raises ValidationError listing every structural error (wrong format tag,
    unsupported version, duplicate block ids, ...).
    """
    check = validate_document(data)
    if not check.ok:
        raise ValidationError(check.errors)
    return decode(document_from_mapping(data))


def import_from_json(text: str) -> Notebook:
    """Parse, validate and decode a JSON export. Raises FormatError or ValidationError."""
    return _load_checked(parse_json(text))


def import_from_yaml(text: str) -> Notebook:
    """Parse, validate and decode .sqlnb text. Raises FormatError or ValidationError."""
    return _load_checked(parse_text(text))


def export_filename(notebook: Notebook, extension: str) -> str:
    """Download name: title with whitespace runs replaced by '_', then the notebook id."""
    stem = re.sub(r"\s+", "_", notebook.title)
    return f"{stem}_{notebook.id}.{extension.lstrip('.')}"
