import json

import pytest

from src.grokipedia_pipeline.errors import RequestBuildError
from src.grokipedia_pipeline.prompts import (
    EMPTY_ARRAY_DIRECTIVE,
    SYSTEM_PROMPT,
    build_completion_request,
    expected_entry_count,
)


def sample_payload(n):
    return {
        "data": [
            {"id": str(i), "text": f"Breaking: post number {i}"} for i in range(n)
        ],
        "meta": {"result_count": n},
    }


def test_user_prompt_caps_entries_at_data_length():
    """With two posts the prompt allows at most two entries, one per post, never null."""
    request = build_completion_request(sample_payload(2), "grok-test")

    assert "with at most 2 objects" in request.user_prompt
    assert "Do not combine multiple payload items into one entry." in request.user_prompt
    assert "omit the entry entirely instead of outputting null" in request.user_prompt
    assert EMPTY_ARRAY_DIRECTIVE not in request.user_prompt


@pytest.mark.parametrize(
    "payload",
    [
        {"meta": {"result_count": 0}},
        {"data": []},
        {"data": "not a list"},
        [1, 2, 3],
    ],
)
def test_user_prompt_requires_empty_array_without_data(payload):
    """Missing, empty or non-list data asks for an empty array."""
    request = build_completion_request(payload, "grok-test")

    assert EMPTY_ARRAY_DIRECTIVE in request.user_prompt
    assert "at most" not in request.user_prompt


def test_user_prompt_embeds_serialized_payload_verbatim():
    """The payload appears in the prompt exactly as json.dumps renders it."""
    payload = sample_payload(1)
    request = build_completion_request(payload, "grok-test")

    assert json.dumps(payload, ensure_ascii=False) in request.user_prompt


def test_system_prompt_is_stable_and_payload_independent():
    """The system prompt does not change with the payload."""
    a = build_completion_request(sample_payload(1), "grok-test")
    b = build_completion_request(sample_payload(5), "other-model")

    assert a.system_prompt == b.system_prompt == SYSTEM_PROMPT
    assert "Breaking" not in a.system_prompt


def test_request_declares_three_tools_and_parallel_calls():
    request = build_completion_request(sample_payload(1), "grok-test")
    kwargs = request.to_create_kwargs()

    assert request.model == "grok-test"
    assert request.parallel_tool_calls is True
    assert [t["type"] for t in kwargs["tools"]] == ["web_search", "x_search", "code_execution"]
    assert kwargs["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}
    assert kwargs["messages"][1]["content"] == request.user_prompt


def test_unserializable_payload_raises_request_build_error():
    """A payload json cannot encode is rejected before any request."""
    with pytest.raises(RequestBuildError, match="not JSON serializable"):
        build_completion_request({"data": [object()]}, "grok-test")


def test_expected_entry_count():
    assert expected_entry_count(sample_payload(3)) == 3
    assert expected_entry_count({}) == 0
    assert expected_entry_count(None) == 0
