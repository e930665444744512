"""Tests for cell models."""

import pytest
from pydantic import ValidationError

from sqlnb.notebook.cell import (
    Attachment,
    Cell,
    CellMetadata,
    CellResult,
    CellType,
    TextContent,
    generate_cell_id,
    parse_attachment,
)


def test_generate_cell_id_format() -> None:
    cid = generate_cell_id()
    assert cid.startswith("cell_")
    assert len(cid) == 13  # "cell_" + 8 hex


def test_generate_cell_id_unique() -> None:
    ids = {generate_cell_id() for _ in range(100)}
    assert len(ids) == 100


def test_cell_defaults() -> None:
    cell = Cell()
    assert cell.id.startswith("cell_")
    assert cell.type == CellType.MARKDOWN
    assert cell.content == TextContent(text="")
    assert cell.order == 0
    assert cell.metadata is None


def test_cell_accepts_string_content() -> None:
    cell = Cell(type=CellType.SQL, content="SELECT 1")
    assert isinstance(cell.content, TextContent)
    assert cell.raw == "SELECT 1"


def test_attachment_cell_from_json_string() -> None:
    raw = '{"type": "image", "url": "https://example.com/a.png", "mimeType": "image/png"}'
    cell = Cell(type=CellType.IMAGE, content=raw)
    assert isinstance(cell.content, Attachment)
    assert cell.content.mime_type == "image/png"
    assert cell.content.id.startswith("att_")


def test_attachment_raw_is_camel_case_json() -> None:
    att = Attachment(id="att_1", type="file", url="s3://bucket/report.csv", filename="report.csv", size=10)
    cell = Cell(type=CellType.FILE, content=att)
    assert cell.raw == att.to_raw()
    assert parse_attachment(cell.raw) == att
    assert "mimeType" not in cell.raw  # None fields are omitted


def test_content_must_match_type() -> None:
    with pytest.raises(ValidationError):
        Cell(type=CellType.IMAGE, content=TextContent(text="not an image"))
    with pytest.raises(ValidationError):
        Cell(type=CellType.SQL, content=Attachment(type="url", url="https://example.com"))


def test_attachment_cell_rejects_non_json() -> None:
    with pytest.raises(ValidationError):
        Cell(type=CellType.FILE, content="just some text")


def test_parse_attachment_rejects_non_object() -> None:
    with pytest.raises(ValueError, match="JSON object"):
        parse_attachment("[1, 2]")


def test_negative_order_rejected() -> None:
    with pytest.raises(ValidationError):
        Cell(order=-1)


def test_cell_is_attachment() -> None:
    assert CellType.IMAGE.is_attachment
    assert CellType.FILE.is_attachment
    assert not CellType.SQL.is_attachment
    assert not CellType.MARKDOWN.is_attachment


def test_cell_serialization_roundtrip() -> None:
    cell = Cell(
        type=CellType.SQL,
        content="SELECT 1",
        order=3,
        metadata=CellMetadata(executed=True, execution_time_ms=12, result_count=1),
    )
    json_str = cell.model_dump_json(by_alias=True)
    assert '"executionTimeMs":12' in json_str
    restored = Cell.model_validate_json(json_str)
    assert restored == cell


def test_cell_result_row_count() -> None:
    result = CellResult(cell_id="c1", data=[{"a": 1}, {"a": 2}], columns=["a"])
    assert result.row_count == 2
    assert result.error is None
    assert result.executed_at.tzinfo is not None


def test_cell_result_accepts_camel_case() -> None:
    result = CellResult.model_validate({"cellId": "c1", "executionTimeMs": 30, "error": "boom"})
    assert result.cell_id == "c1"
    assert result.execution_time_ms == 30
    assert result.row_count == 0
