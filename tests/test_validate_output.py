# tests/test_validate_output.py

"""
Tests for the summary output validator.

These tests verify that `validate_output.py` correctly detects valid,
invalid, and edge-case summary documents.
"""


import json
from pathlib import Path

import pytest

from src.grokipedia_pipeline.models import SummaryRecord
from src.grokipedia_pipeline.persistence import write_summary_file
from src.grokipedia_pipeline.scripts.validate_output import (
    load_summary,
    validate_entry,
    validate_summary,
    main as validate_main,
)


# -------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------


def make_entry(idx: int = 0):
    return {
        "url": f"https://grokipedia.com/page/Topic_{idx}",
        "suggested_edit": f"Add development {idx}.",
        "original_text": f"Original sentence {idx}.",
    }


def make_document(n: int = 2, model: str = "grok-test"):
    return {"model": model, "summary": [make_entry(i) for i in range(n)]}


# -------------------------------------------------------------------
# validate_entry
# -------------------------------------------------------------------


def test_validate_entry_valid():
    errors, warnings = validate_entry(make_entry(), idx=0)
    assert errors == []
    assert warnings == []


def test_validate_entry_accepts_field_aliases():
    """Alternate spellings the model tends to emit count as the expected fields."""
    entry = {
        "grokipedia_url": "https://grokipedia.com/page/NASA",
        "edit": "Add the delay.",
        "ORIGINAL TEXT": "Scheduled for 2026.",
    }
    errors, warnings = validate_entry(entry, idx=0)
    assert errors == []
    assert warnings == []


def test_validate_entry_null_is_error():
    errors, _ = validate_entry(None, idx=3)
    assert any("[idx=3] entry is null" in e for e in errors)


def test_validate_entry_missing_fields_are_warnings():
    """Incomplete entries are warned about but do not fail validation."""
    errors, warnings = validate_entry({"url": "https://grokipedia.com/page/X"}, idx=1)
    assert errors == []
    assert any("suggested_edit" in w for w in warnings)
    assert any("original_text" in w for w in warnings)


def test_validate_entry_non_object_is_error():
    errors, _ = validate_entry("just a string", idx=0)
    assert any("should be an object" in e for e in errors)


# -------------------------------------------------------------------
# validate_summary
# -------------------------------------------------------------------


def test_validate_summary_valid_document():
    errors, warnings = validate_summary(make_document(), expected_model="grok-test", max_entries=2)
    assert errors == []
    assert warnings == []


def test_validate_summary_too_many_entries():
    """More entries than posts fails validation."""
    errors, _ = validate_summary(make_document(3), max_entries=2)
    assert any("3 entries > max_entries 2" in e for e in errors)


def test_validate_summary_wrong_model():
    errors, _ = validate_summary(make_document(), expected_model="other")
    assert any("expected 'other'" in e for e in errors)


def test_validate_summary_object_summary_is_error():
    errors, _ = validate_summary({"model": "m", "summary": {"url": "x"}})
    assert any("should be an array" in e for e in errors)


def test_validate_summary_raw_text_is_warning_only():
    """A raw-text summary from the raw extraction mode only warns."""
    errors, warnings = validate_summary({"model": "m", "summary": "free text"})
    assert errors == []
    assert any("raw text" in w for w in warnings)


def test_validate_summary_raw_text_still_reports_extra_keys():
    """
    Top-level keys outside model, summary, _id and updated_at are flagged
    even when the summary is raw text.
    """
    document = {"model": "m", "summary": "free text", "debug": True}

    errors, warnings = validate_summary(document)

    assert errors == []
    assert "unexpected top-level keys: ['debug']" in warnings


def test_validate_summary_store_fields_allowed():
    """Documents read back from MongoDB carry _id and updated_at without warnings."""
    doc = {**make_document(1), "_id": "grok-test", "updated_at": "2025-12-16T01:05:30Z"}
    errors, warnings = validate_summary(doc)
    assert errors == []
    assert warnings == []


def test_validate_summary_missing_keys():
    errors, _ = validate_summary({})
    assert "missing 'model'" in errors
    assert "missing 'summary'" in errors


# -------------------------------------------------------------------
# load_summary / main
# -------------------------------------------------------------------


def test_load_summary_rejects_top_level_array(tmp_path: Path):
    path = tmp_path / "summary.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError, match="not an object"):
        load_summary(path)


def test_main_passes_on_file_written_by_pipeline(tmp_path: Path, capsys):
    """A file written by write_summary_file passes the CLI validator."""
    path = tmp_path / "summary.json"
    write_summary_file(SummaryRecord(model="grok-test", summary=[make_entry(0)]), path)

    with pytest.raises(SystemExit) as excinfo:
        validate_main(["--path", str(path), "--expected-model", "grok-test", "--max-entries", "1"])

    assert excinfo.value.code == 0
    out = capsys.readouterr().out
    assert "VALIDATION PASSED" in out
    assert "Total entries: 1" in out


def test_main_fails_on_invalid_document(tmp_path: Path, capsys):
    path = tmp_path / "summary.json"
    path.write_text(json.dumps({"model": "", "summary": [None]}), encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        validate_main(["--path", str(path)])

    assert excinfo.value.code == 1
    assert "VALIDATION FAILED" in capsys.readouterr().out


def test_main_fails_on_missing_file(tmp_path: Path, capsys):
    with pytest.raises(SystemExit) as excinfo:
        validate_main(["--path", str(tmp_path / "nope.json")])

    assert excinfo.value.code == 1
    assert "FAILED TO LOAD FILE" in capsys.readouterr().out
