"""Summary Output Validation Script

Validates that a generated summary file conforms to the expected shape:
  - Top-level object with 'model' (non-empty string) and 'summary'
  - 'summary' is a JSON array (or a string for raw-mode runs)
  - Array entries are objects; missing Grokipedia fields are warnings
  - Optional cap on the number of entries

Usage:
    python -m src.grokipedia_pipeline.scripts.validate_output \\
        --path summary.json \\
        --max-entries 10

Exits with code 0 on success, 1 on validation failure, 2 on argument error.
"""

#!/usr/bin/env python
import argparse
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

# Fields the agent is asked to produce for each entry. Names vary between
# runs, so each expected field lists the accepted spellings.
EXPECTED_ENTRY_FIELDS = {
    "url": ("url", "grokipedia_url", "page_url"),
    "suggested_edit": ("suggested_edit", "edit", "suggestion"),
    "original_text": ("original_text", "ORIGINAL TEXT", "original"),
}


def load_summary(path: Path) -> Dict[str, Any]:
    """Load the summary document from a JSON file."""
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError("Top-level JSON is not an object.")
    return data


def validate_entry(entry: Any, idx: int) -> Tuple[List[str], List[str]]:
    """Validate a single summary entry.

    Returns:
        (errors, warnings)
    """
    errors: List[str] = []
    warnings: List[str] = []

    if entry is None:
        errors.append(f"[idx={idx}] entry is null (skipped items must be omitted)")
        return errors, warnings
    if not isinstance(entry, dict):
        errors.append(
            f"[idx={idx}] entry should be an object, got {type(entry).__name__}"
        )
        return errors, warnings

    for field, aliases in EXPECTED_ENTRY_FIELDS.items():
        value = next((entry[a] for a in aliases if a in entry), None)
        if value is None:
            warnings.append(f"[idx={idx}] entry missing expected field '{field}'")
        elif isinstance(value, str) and not value.strip():
            warnings.append(f"[idx={idx}] entry field '{field}' is empty")

    return errors, warnings


def validate_summary(
    document: Dict[str, Any],
    expected_model: Optional[str] = None,
    max_entries: Optional[int] = None,
) -> Tuple[List[str], List[str]]:
    """Validate a whole summary document.

    Returns:
        (errors, warnings)
    """
    errors: List[str] = []
    warnings: List[str] = []

    # --- model ---
    model = document.get("model")
    if model is None:
        errors.append("missing 'model'")
    elif not isinstance(model, str) or not model.strip():
        errors.append(f"'model' should be a non-empty string, got {model!r}")
    elif expected_model is not None and model != expected_model:
        errors.append(f"model {model!r} != expected {expected_model!r}")

    extra = set(document) - {"model", "summary", "_id", "updated_at"}
    if extra:
        warnings.append(f"unexpected top-level keys: {sorted(extra)}")

    # --- summary ---
    if "summary" not in document:
        errors.append("missing 'summary'")
        return errors, warnings

    summary = document["summary"]
    if isinstance(summary, str):
        warnings.append("summary is raw text (extraction was disabled)")
        if not summary.strip():
            errors.append("summary text is empty/whitespace")
        return errors, warnings
    if not isinstance(summary, list):
        errors.append(
            f"'summary' should be an array, got {type(summary).__name__}"
        )
        return errors, warnings

    if max_entries is not None and len(summary) > max_entries:
        errors.append(f"summary has {len(summary)} entries > max_entries {max_entries}")

    for idx, entry in enumerate(summary):
        entry_errors, entry_warnings = validate_entry(entry, idx)
        errors.extend(entry_errors)
        warnings.extend(entry_warnings)

    return errors, warnings


def main(argv: list[str] | None = None) -> None:
    """Validate a summary output file.

    Args:
        argv: Command-line arguments. If None, uses sys.argv[1:]

    Raises:
        SystemExit: With code 0 on success, 1 on validation failure
    """
    parser = argparse.ArgumentParser(
        description="Validate summary JSON output."
    )
    parser.add_argument(
        "--path",
        type=str,
        required=True,
        help="Path to summary.json",
    )
    parser.add_argument(
        "--expected-model",
        type=str,
        default=None,
        help="Fail unless the summary was produced by this model.",
    )
    parser.add_argument(
        "--max-entries",
        type=int,
        default=None,
        help="Maximum number of summary entries (e.g. len(payload.data)).",
    )
    args = parser.parse_args(argv)

    path = Path(args.path)

    try:
        document = load_summary(path)
    except Exception as e:
        print(f"FAILED TO LOAD FILE: {e}")
        raise SystemExit(1)

    errors, warnings = validate_summary(
        document,
        expected_model=args.expected_model,
        max_entries=args.max_entries,
    )

    if errors:
        print("VALIDATION FAILED:\n")
        for err in errors:
            print(err)
        print(f"\nTotal errors: {len(errors)}")
        if warnings:
            print(f"Total warnings: {len(warnings)}")
        raise SystemExit(1)

    print("VALIDATION PASSED")
    summary = document["summary"]
    if isinstance(summary, list):
        print(f"Total entries: {len(summary)}")
    if warnings:
        print("\nWarnings (non-fatal):")
        for w in warnings:
            print(w)
        print(f"\nTotal warnings: {len(warnings)}")

    raise SystemExit(0)

if __name__ == "__main__":
    main()
