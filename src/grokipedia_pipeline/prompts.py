"""Request Builder

Turns an X search payload into a tool-enabled completion request for the
Grokipedia edit agent.
"""

import json
from typing import Any

from .errors import RequestBuildError
from .models import CompletionRequest

SYSTEM_PROMPT = (
    "You are the real time pipeline agent for breaking X news to Grokipedia. "
    "Based on the breaking news data provided, determine what are the concerning "
    "organizations or individuals involved and find an existing Grokipedia article "
    "that matches the context of that same organization or individual."
)

TASK_PROMPT = (
    "You are the real time pipeline agent for breaking X news to Grokipedia. "
    "Based on the entire JSON, the breaking news data provided, determine what are "
    "the concerning organizations or individuals involved and find an existing "
    "Grokipedia article that matches the context of that same organization or "
    "individual. Here is what I need from you: the url of the grokipedia page (if it "
    "exists), then your suggested edit based on that initial JSON payload of relevant "
    "news, and finally the ORIGINAL TEXT within that grokipedia page that is subject "
    "to be changed and updated. Use your tools to go to the URL of the grokipedia page "
    "if it exists in order to fetch REAL text from the article that is the MOST "
    "relevant to the suggested edit from the news claim. Word for word, that will be "
    "the ORIGINAL TEXT. Make sure the JSON has inner objects of multiple entries for "
    "this which each have the fields that were requested."
)

EMPTY_ARRAY_DIRECTIVE = "If payload.data is empty, return an empty JSON array (just [])."


def expected_entry_count(payload: Any) -> int:
    """Number of entries in ``payload["data"]``, or 0 when absent or not a list."""
    if not isinstance(payload, dict):
        return 0
    data = payload.get("data")
    if not isinstance(data, list):
        return 0
    return len(data)


def entry_directive(expected_entries: int) -> str:
    if expected_entries <= 0:
        return EMPTY_ARRAY_DIRECTIVE
    return (
        f"Return a JSON array (not wrapped in an object) with at most {expected_entries} "
        "objects, each corresponding to one payload.data[i] in order. Make a best-effort "
        "attempt to produce an entry for every payload item (use tools/web search if "
        "needed) and only skip an item if, after searching, no relevant Grokipedia page "
        "exists. When you skip, omit the entry entirely instead of outputting null or "
        "empty fields. Do not combine multiple payload items into one entry."
    )


def build_completion_request(payload: Any, model: str) -> CompletionRequest:
    """
    Build the completion request for one summarization attempt.

    The serialized payload is embedded verbatim in the user prompt, followed
    by the task description and the output cardinality directive.

    Args:
        payload: Parsed JSON document from the X search API
        model: xAI model identifier

    Returns:
        CompletionRequest with the fixed system prompt and toolset

    Raises:
        RequestBuildError: If the payload cannot be serialized to JSON
    """
    try:
        serialized = json.dumps(payload, ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise RequestBuildError(f"Payload is not JSON serializable: {exc}") from exc

    directive = entry_directive(expected_entry_count(payload))
    user_prompt = (
        f"Here is the JSON payload returned by the X search endpoint: {serialized}. "
        f"{TASK_PROMPT} {directive}"
    )

    return CompletionRequest(
        system_prompt=SYSTEM_PROMPT,
        user_prompt=user_prompt,
        model=model,
    )
