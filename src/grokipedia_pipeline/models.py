"""Data Models Module

Defines Pydantic models for the values passed between pipeline stages:
the completion request sent to xAI, tool-call events surfaced from the
stream, and the summary record that gets persisted.
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict

# Server-side tools the agent may use while researching Grokipedia pages.
DEFAULT_TOOLS: List[Dict[str, Any]] = [
    {"type": "web_search"},
    {"type": "x_search"},
    {"type": "code_execution"},
]


class CompletionRequest(BaseModel):
    """Tool-enabled chat completion request.

    Built once per attempt and never mutated.
    """
    model_config = ConfigDict(frozen=True)

    system_prompt: str
    user_prompt: str
    model: str
    tools: List[Dict[str, Any]] = DEFAULT_TOOLS
    parallel_tool_calls: bool = True

    def to_messages(self) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": self.system_prompt},
            {"role": "user", "content": self.user_prompt},
        ]

    def to_create_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for ``chat.completions.create``."""
        return {
            "model": self.model,
            "messages": self.to_messages(),
            "tools": [dict(tool) for tool in self.tools],
            "parallel_tool_calls": self.parallel_tool_calls,
        }


class ToolCallEvent(BaseModel):
    """A tool invocation observed in the response stream."""
    tool_type: str
    function_name: Optional[str] = None
    arguments: Optional[str] = None


class SummaryRecord(BaseModel):
    """Persisted artifact: model id plus the validated (or raw) summary."""
    model: str
    summary: Union[List[Any], str]

    def to_document(self) -> Dict[str, Any]:
        return {"model": self.model, "summary": self.summary}
