"""Tests for structural document validation."""

from __future__ import annotations

import copy
import json
from typing import Any

import pytest

from sqlnb.document.codec import encode, to_json
from sqlnb.document.example import example_document
from sqlnb.document.validator import validate_document

from .conftest import make_notebook, make_results


def _doc() -> dict[str, Any]:
    return json.loads(to_json(encode(make_notebook(), make_results())))


def _codes(data: Any) -> set[str]:
    return {d.code for d in validate_document(data).diagnostics}


def test_encoded_document_is_valid() -> None:
    result = validate_document(_doc())
    assert result.valid
    assert result.errors == []
    assert result.warnings == []
    assert result.data is not None


def test_example_document_is_valid() -> None:
    result = validate_document(example_document())
    assert result.valid, result.errors


def test_accepts_model_instance() -> None:
    result = validate_document(encode(make_notebook()))
    assert result.valid


def test_missing_blocks_is_an_error() -> None:
    data = _doc()
    del data["blocks"]
    result = validate_document(data)
    assert not result.valid
    assert "Missing or invalid blocks array" in result.errors
    assert result.data is None


def test_blocks_not_a_list() -> None:
    data = _doc()
    data["blocks"] = {"c1": {}}
    assert "DOC_INVALID_BLOCKS" in _codes(data)


def test_missing_version_is_only_a_warning() -> None:
    data = _doc()
    del data["schema"]["version"]
    result = validate_document(data)
    assert result.valid
    assert result.warnings == ["Missing schema version"]


def test_unsupported_version_is_an_error() -> None:
    data = _doc()
    data["schema"]["version"] = "2.0.0"
    result = validate_document(data)
    assert not result.valid
    assert result.diagnostics[0].code == "DOC_UNSUPPORTED_VERSION"
    assert result.diagnostics[0].hint is not None


def test_missing_schema() -> None:
    data = _doc()
    del data["schema"]
    assert "DOC_MISSING_SCHEMA" in _codes(data)


def test_wrong_format_tag() -> None:
    data = _doc()
    data["schema"]["format"] = "jupyter"
    assert "DOC_UNSUPPORTED_FORMAT" in _codes(data)


def test_missing_format_tag() -> None:
    data = _doc()
    del data["schema"]["format"]
    assert "DOC_MISSING_FORMAT" in _codes(data)


@pytest.mark.parametrize(("field", "code"), [("id", "DOC_MISSING_ID"), ("title", "DOC_MISSING_TITLE")])
def test_missing_required_fields(field: str, code: str) -> None:
    data = _doc()
    del data[field]
    result = validate_document(data)
    assert not result.valid
    assert code in {d.code for d in result.diagnostics}
    assert f"Missing required field: {field}" in result.errors


def test_missing_metadata_is_a_warning() -> None:
    data = _doc()
    del data["metadata"]
    result = validate_document(data)
    assert result.valid
    assert result.warnings == ["Missing metadata section"]


def test_not_a_mapping() -> None:
    result = validate_document(["not", "a", "document"])  # type: ignore[arg-type]
    assert not result.valid
    assert result.diagnostics[0].code == "DOC_NOT_MAPPING"


def test_all_errors_are_collected() -> None:
    data = _doc()
    del data["id"]
    del data["title"]
    del data["blocks"]
    result = validate_document(data)
    assert len(result.errors) == 3


def test_does_not_mutate_input() -> None:
    data = _doc()
    del data["blocks"][0]["content"]["raw"]
    data["blocks"][1]["order"] = "first"
    before = copy.deepcopy(data)
    validate_document(data)
    assert data == before


def test_block_missing_raw() -> None:
    data = _doc()
    del data["blocks"][0]["content"]["raw"]
    assert "BLOCK_MISSING_RAW" in _codes(data)


def test_block_empty_raw_is_allowed() -> None:
    data = _doc()
    data["blocks"][0]["content"]["raw"] = ""
    assert validate_document(data).valid


@pytest.mark.parametrize("order", ["1", None, True])
def test_block_order_must_be_number(order: Any) -> None:
    data = _doc()
    data["blocks"][1]["order"] = order
    assert "BLOCK_INVALID_ORDER" in _codes(data)


def test_block_missing_depth() -> None:
    data = _doc()
    del data["blocks"][0]["depth"]
    assert "BLOCK_INVALID_DEPTH" in _codes(data)


def test_block_missing_id_and_type() -> None:
    data = _doc()
    del data["blocks"][0]["id"]
    del data["blocks"][0]["type"]
    codes = _codes(data)
    assert "BLOCK_MISSING_ID" in codes
    assert "BLOCK_MISSING_TYPE" in codes


def test_duplicate_block_ids() -> None:
    data = _doc()
    data["blocks"][1]["id"] = data["blocks"][0]["id"]
    result = validate_document(data)
    assert not result.valid
    assert any("duplicate id 'c1'" in e for e in result.errors)


def test_unknown_block_type_is_a_warning() -> None:
    data = _doc()
    data["blocks"][0]["type"] = "sparkline"
    result = validate_document(data)
    assert result.valid
    assert result.diagnostics[0].code == "BLOCK_UNKNOWN_TYPE"


def test_block_missing_timestamps() -> None:
    data = _doc()
    del data["blocks"][0]["metadata"]["created"]
    del data["blocks"][0]["metadata"]["updated"]
    codes = _codes(data)
    assert "BLOCK_MISSING_CREATED" in codes
    assert "BLOCK_MISSING_UPDATED" in codes


def test_block_missing_metadata() -> None:
    data = _doc()
    del data["blocks"][0]["metadata"]
    assert "BLOCK_MISSING_METADATA" in _codes(data)


def test_block_state_flags_must_be_booleans() -> None:
    data = _doc()
    data["blocks"][0]["state"]["editing"] = "no"
    del data["blocks"][0]["state"]["valid"]
    codes = _codes(data)
    assert "BLOCK_STATE_EDITING" in codes
    assert "BLOCK_STATE_VALID" in codes


def test_block_missing_state() -> None:
    data = _doc()
    del data["blocks"][0]["state"]
    assert "BLOCK_MISSING_STATE" in _codes(data)


def test_executed_block_needs_execution_time() -> None:
    data = _doc()
    del data["blocks"][1]["metadata"]["execution"]["executionTimeMs"]
    assert "BLOCK_EXECUTION_TIME" in _codes(data)


def test_successful_block_needs_result_count() -> None:
    data = _doc()
    del data["blocks"][1]["metadata"]["execution"]["resultCount"]
    assert "BLOCK_EXECUTION_COUNT" in _codes(data)


def test_error_status_needs_message() -> None:
    data = _doc()
    del data["blocks"][2]["metadata"]["execution"]["errorMessage"]
    assert "BLOCK_EXECUTION_ERROR" in _codes(data)


def test_execution_must_be_mapping() -> None:
    data = _doc()
    data["blocks"][1]["metadata"]["execution"] = "done"
    assert "BLOCK_INVALID_EXECUTION" in _codes(data)


def test_order_gaps_are_a_warning() -> None:
    data = _doc()
    data["blocks"][3]["order"] = 7
    result = validate_document(data)
    assert result.valid
    assert [d.code for d in result.diagnostics] == ["BLOCK_ORDER_GAPS"]


def test_block_not_a_mapping() -> None:
    data = _doc()
    data["blocks"].append("stray")
    assert "BLOCK_NOT_MAPPING" in _codes(data)
