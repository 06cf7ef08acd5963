"""Completion Stream Module

Opens a streamed chat completion against xAI's OpenAI-compatible API and
folds the chunks into a single summary string.

Key behavior:
  - Chunks are consumed strictly in arrival order, one at a time
  - Tool-call events are emitted through a callback before the delta's
    content is appended; they never affect the accumulated text
  - Transport errors are mapped onto the pipeline's error taxonomy; an HTTP
    504 from the SDK, or the gateway-timeout signature, becomes a typed,
    retryable error
  - The SDK's own retries are disabled; the summarizer owns the retry loop
"""

import logging
from typing import Any, AsyncIterable, Callable, Iterable, Optional

import httpx
from openai import APIStatusError, AsyncOpenAI

from .config import PipelineSettings
from .errors import CompletionError, GatewayTimeoutError, MissingCompletionError
from .models import CompletionRequest, ToolCallEvent

logger = logging.getLogger(__name__)

# xAI aborts agentic streams with a gRPC-style compression error wrapping a
# 504 when the gateway times out before the first chunk. Over REST the same
# failure arrives as an APIStatusError with status 504.
GATEWAY_TIMEOUT_STATUS = 504
COMPRESSION_SIGNATURE = "invalid compression flag"
GATEWAY_TIMEOUT_SIGNATURE = "504 Gateway Timeout"

ToolCallHandler = Callable[[ToolCallEvent], None]


def has_gateway_timeout_signature(message: str) -> bool:
    return COMPRESSION_SIGNATURE in message and GATEWAY_TIMEOUT_SIGNATURE in message


def is_gateway_timeout_status(exc: BaseException) -> bool:
    return isinstance(exc, APIStatusError) and exc.status_code == GATEWAY_TIMEOUT_STATUS


def map_completion_error(exc: BaseException) -> CompletionError:
    """Translate a transport/SDK exception into a CompletionError."""
    if isinstance(exc, CompletionError):
        return exc
    msg = str(exc)
    if is_gateway_timeout_status(exc) or has_gateway_timeout_signature(msg):
        return GatewayTimeoutError(
            "xAI agentic stream aborted (gateway timeout before first chunk). "
            f"Raw error: {msg}"
        )
    return CompletionError(msg or exc.__class__.__name__)


def log_tool_call(event: ToolCallEvent) -> None:
    logger.info("Running %s tool...", event.tool_type)
    if event.function_name is not None:
        logger.info(
            "Calling tool: %s with arguments: %s",
            event.function_name,
            event.arguments,
        )


def _tool_call_events(tool_calls: Optional[Iterable[Any]]) -> Iterable[ToolCallEvent]:
    for call in tool_calls or ():
        function = getattr(call, "function", None)
        yield ToolCallEvent(
            tool_type=str(getattr(call, "type", None) or "unknown"),
            function_name=getattr(function, "name", None) if function else None,
            arguments=getattr(function, "arguments", None) if function else None,
        )


async def aggregate_stream(
    stream: AsyncIterable[Any],
    on_tool_call: Optional[ToolCallHandler] = None,
) -> str:
    """
    Consume a completion stream to exhaustion and return the summary text.

    Args:
        stream: Async iterable of chunks exposing ``choices[i].delta`` with
            ``content`` and ``tool_calls``
        on_tool_call: Receives every tool-call event (default: log it)

    Returns:
        Concatenation of all delta contents, in arrival order

    Raises:
        CompletionError: If the stream fails mid-way
        MissingCompletionError: If no non-whitespace text was produced
    """
    handler = on_tool_call or log_tool_call
    parts = []
    chunk_count = 0

    try:
        async for chunk in stream:
            chunk_count += 1
            for output in getattr(chunk, "choices", None) or ():
                delta = getattr(output, "delta", None)
                if delta is None:
                    continue

                for event in _tool_call_events(getattr(delta, "tool_calls", None)):
                    handler(event)

                content = getattr(delta, "content", None)
                if content:
                    parts.append(content)
    except CompletionError:
        raise
    except Exception as exc:
        raise map_completion_error(exc) from exc

    summary = "".join(parts)
    logger.debug("Stream exhausted after %d chunks (%d chars)", chunk_count, len(summary))

    if not summary.strip():
        raise MissingCompletionError("xAI response missing completion text")
    return summary


def build_completion_client(
    settings: PipelineSettings,
    http_client: Optional[httpx.AsyncClient] = None,
) -> AsyncOpenAI:
    """xAI client with SDK retries off; callers must close it."""
    return AsyncOpenAI(
        api_key=settings.xai_api_key,
        base_url=settings.xai_base_url,
        max_retries=0,
        http_client=http_client,
    )


async def stream_summary(
    request: CompletionRequest,
    client: Any,
    on_tool_call: Optional[ToolCallHandler] = None,
) -> str:
    """Open a streamed completion for ``request`` and aggregate it."""
    logger.debug("Opening completion stream: model=%s", request.model)
    try:
        stream = await client.chat.completions.create(
            stream=True,
            **request.to_create_kwargs(),
        )
    except Exception as exc:
        raise map_completion_error(exc) from exc

    return await aggregate_stream(stream, on_tool_call=on_tool_call)
