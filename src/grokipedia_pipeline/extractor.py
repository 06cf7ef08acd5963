"""Result Extraction Module

Recovers the JSON array the agent was asked to return from its free-form
streamed answer.

Strategies:
  - first_last: slice from the first '[' to the last ']' (default). Breaks
    when prose around the array contains brackets of its own.
  - balanced: scan for the first syntactically complete top-level array,
    tracking nesting depth and skipping brackets inside string literals.
  - raw: skip extraction and persist the aggregated text as-is.
"""

import json
import logging
from typing import Any, Iterator, List, Optional

from .errors import ConfigError, ExtractionError
from .models import SummaryRecord

logger = logging.getLogger(__name__)

EXTRACTION_MODES = ("first_last", "balanced", "raw")


def _parse_array(candidate: str) -> List[Any]:
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise ExtractionError(
            f"xAI summary is not valid JSON array. Parsing failed: {e}"
        ) from e
    if not isinstance(parsed, list):
        raise ExtractionError("xAI summary must be a JSON array.")
    return parsed


def extract_json_array(text: str) -> List[Any]:
    """
    Parse the substring between the first '[' and the last ']' (inclusive).

    Raises:
        ExtractionError: If delimiters are missing, the slice is not valid
            JSON, or it parses to something other than an array
    """
    start = text.find("[")
    if start == -1:
        raise ExtractionError("xAI summary missing JSON array delimiters.")
    end = text.rfind("]")
    if end < start:
        # unterminated array: let the parser report where it breaks
        return _parse_array(text[start:])
    return _parse_array(text[start : end + 1])


def iter_balanced_arrays(text: str) -> Iterator[str]:
    """
    Yield every complete top-level ``[...]`` span in ``text``, left to right.

    Brackets inside double-quoted strings (including escaped quotes) are
    ignored once a candidate array has been opened.
    """
    depth = 0
    start = -1
    in_string = False
    escaped = False

    for idx, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            # prose quotes outside a candidate are not tracked
            if depth > 0:
                in_string = True
        elif ch == "[":
            if depth == 0:
                start = idx
            depth += 1
        elif ch == "]" and depth > 0:
            depth -= 1
            if depth == 0:
                yield text[start : idx + 1]


def find_balanced_array(text: str) -> Optional[str]:
    """First complete top-level ``[...]`` span, or None."""
    return next(iter_balanced_arrays(text), None)


def extract_balanced_array(text: str) -> List[Any]:
    """
    Parse the first balanced span that is a valid JSON array.

    Bracketed prose such as "[citation]" is skipped in favour of a later
    span that parses.
    """
    last_error: Optional[ExtractionError] = None
    for candidate in iter_balanced_arrays(text):
        try:
            return _parse_array(candidate)
        except ExtractionError as e:
            last_error = e
    if last_error is not None:
        raise last_error
    raise ExtractionError("xAI summary missing JSON array delimiters.")


def build_summary_record(text: str, model: str, mode: str = "first_last") -> SummaryRecord:
    """
    Turn the aggregated summary into the record that gets persisted.

    Args:
        text: Aggregated completion text
        model: Model identifier stored alongside the summary
        mode: One of EXTRACTION_MODES

    Raises:
        ExtractionError: If an array cannot be recovered (non-raw modes)
        ConfigError: If ``mode`` is unknown
    """
    if mode == "raw":
        logger.info("Extraction disabled; persisting raw summary text")
        return SummaryRecord(model=model, summary=text)
    if mode == "first_last":
        parsed = extract_json_array(text)
    elif mode == "balanced":
        parsed = extract_balanced_array(text)
    else:
        raise ConfigError(
            f"Unknown extraction mode: {mode!r} (expected one of {', '.join(EXTRACTION_MODES)})"
        )

    logger.info("✓ Extracted JSON array with %d entries", len(parsed))
    return SummaryRecord(model=model, summary=parsed)
