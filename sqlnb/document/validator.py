"""Structural validation of a parsed notebook document.

Runs on plain parsed data (before it is trusted by the codec) and on freshly
encoded documents (as a pre-save self-check). Never raises, never mutates.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sqlnb.core import Result
from sqlnb.document.models import FORMAT_TAG, KNOWN_BLOCK_TYPES, SUPPORTED_VERSIONS, NotebookDocument


def validate_document(document: Mapping[str, Any] | NotebookDocument) -> Result[dict[str, Any]]:
    """Validate document structure.

    ``result.valid`` is False when any error was found; warnings never block.
    Returns the checked mapping as data on success.
    """
    result: Result[dict[str, Any]] = Result()

    if isinstance(document, NotebookDocument):
        data: Any = document.model_dump(mode="json", by_alias=True, exclude_none=True)
    else:
        data = document

    if not isinstance(data, Mapping):
        result.error("DOC_NOT_MAPPING", "Document must be a mapping at the top level")
        return result

    _check_schema(data.get("schema"), result)

    if not data.get("id"):
        result.error("DOC_MISSING_ID", "Missing required field: id")
    if not data.get("title"):
        result.error("DOC_MISSING_TITLE", "Missing required field: title")
    if not isinstance(data.get("metadata"), Mapping):
        result.warning("DOC_MISSING_METADATA", "Missing metadata section")

    blocks = data.get("blocks")
    if not isinstance(blocks, list):
        result.error("DOC_INVALID_BLOCKS", "Missing or invalid blocks array")
    else:
        _check_blocks(blocks, result)

    if result.ok:
        result.data = dict(data)
    return result


def _check_schema(schema: Any, result: Result[dict[str, Any]]) -> None:
    if not isinstance(schema, Mapping):
        result.error("DOC_MISSING_SCHEMA", "Missing required field: schema")
        return

    fmt = schema.get("format")
    if not fmt:
        result.error("DOC_MISSING_FORMAT", "Missing required field: schema.format")
    elif fmt != FORMAT_TAG:
        result.error(
            "DOC_UNSUPPORTED_FORMAT",
            f"Unsupported document format: {fmt!r}",
            hint=f"Expected {FORMAT_TAG!r}",
        )

    version = schema.get("version")
    if not version:
        result.warning("DOC_MISSING_VERSION", "Missing schema version")
    elif str(version) not in SUPPORTED_VERSIONS:
        result.error(
            "DOC_UNSUPPORTED_VERSION",
            f"Unsupported schema version: {version}",
            hint=f"Supported versions: {', '.join(sorted(SUPPORTED_VERSIONS))}",
        )


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _check_blocks(blocks: list[Any], result: Result[dict[str, Any]]) -> None:
    seen: set[str] = set()
    orders: list[Any] = []

    for index, block in enumerate(blocks):
        label = f"Block {index}"
        if not isinstance(block, Mapping):
            result.error("BLOCK_NOT_MAPPING", f"{label}: must be a mapping")
            continue

        block_id = block.get("id")
        if not block_id or not isinstance(block_id, str):
            result.error("BLOCK_MISSING_ID", f"{label}: missing id")
        elif block_id in seen:
            result.error("BLOCK_DUPLICATE_ID", f"{label}: duplicate id {block_id!r}")
        else:
            seen.add(block_id)
            label = f"Block {index} ({block_id})"

        block_type = block.get("type")
        if not block_type:
            result.error("BLOCK_MISSING_TYPE", f"{label}: missing type")
        elif block_type not in KNOWN_BLOCK_TYPES:
            result.warning("BLOCK_UNKNOWN_TYPE", f"{label}: unknown type {block_type!r}")

        content = block.get("content")
        if not isinstance(content, Mapping) or not isinstance(content.get("raw"), str):
            result.error("BLOCK_MISSING_RAW", f"{label}: missing content.raw")

        if not _is_number(block.get("order")):
            result.error("BLOCK_INVALID_ORDER", f"{label}: order must be a number")
        else:
            orders.append(block["order"])
        if not _is_number(block.get("depth")):
            result.error("BLOCK_INVALID_DEPTH", f"{label}: depth must be a number")

        _check_block_metadata(block.get("metadata"), label, result)
        _check_block_state(block.get("state"), label, result)

    if len(orders) == len(blocks) and sorted(orders) != list(range(len(orders))):
        result.warning("BLOCK_ORDER_GAPS", "Block orders are not a dense sequence starting at 0")


def _check_block_metadata(metadata: Any, label: str, result: Result[dict[str, Any]]) -> None:
    if not isinstance(metadata, Mapping):
        result.error("BLOCK_MISSING_METADATA", f"{label}: missing metadata")
        return
    if not metadata.get("created"):
        result.error("BLOCK_MISSING_CREATED", f"{label}: missing metadata.created")
    if not metadata.get("updated"):
        result.error("BLOCK_MISSING_UPDATED", f"{label}: missing metadata.updated")

    execution = metadata.get("execution")
    if execution is None:
        return
    if not isinstance(execution, Mapping):
        result.error("BLOCK_INVALID_EXECUTION", f"{label}: metadata.execution must be a mapping")
        return
    if execution.get("executed") is True and execution.get("executionTimeMs") is None:
        result.error("BLOCK_EXECUTION_TIME", f"{label}: executed block is missing executionTimeMs")
    if execution.get("status") == "success" and execution.get("resultCount") is None:
        result.error("BLOCK_EXECUTION_COUNT", f"{label}: successful execution is missing resultCount")
    if execution.get("status") == "error" and not execution.get("errorMessage"):
        result.error("BLOCK_EXECUTION_ERROR", f"{label}: error status without errorMessage")


def _check_block_state(state: Any, label: str, result: Result[dict[str, Any]]) -> None:
    if not isinstance(state, Mapping):
        result.error("BLOCK_MISSING_STATE", f"{label}: missing state")
        return
    if not isinstance(state.get("editing"), bool):
        result.error("BLOCK_STATE_EDITING", f"{label}: state.editing must be a boolean")
    if not isinstance(state.get("valid"), bool):
        result.error("BLOCK_STATE_VALID", f"{label}: state.valid must be a boolean")
