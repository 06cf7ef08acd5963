"""Summarization Retry Controller

Runs build-request → stream-aggregate up to ``MAX_ATTEMPTS`` times. Only xAI
gateway timeouts (HTTP 504 or the gRPC signature) are retried; everything
else fails fast.
"""

import logging
from typing import Any, Callable, Optional

from .config import PipelineSettings
from .errors import CompletionError, GatewayTimeoutError
from .prompts import build_completion_request
from .streaming import (
    ToolCallHandler,
    build_completion_client,
    has_gateway_timeout_signature,
    is_gateway_timeout_status,
    stream_summary,
)

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3


def is_transient(exc: BaseException) -> bool:
    """True only for the gateway-timeout-before-first-chunk failure."""
    if isinstance(exc, GatewayTimeoutError):
        return True
    return is_gateway_timeout_status(exc) or has_gateway_timeout_signature(str(exc))


async def summarize_once(
    payload: Any,
    settings: PipelineSettings,
    client_factory: Callable[[PipelineSettings], Any] = build_completion_client,
    on_tool_call: Optional[ToolCallHandler] = None,
) -> str:
    """One attempt: fresh client, fresh request, fresh accumulator.

    The client is closed when the attempt ends, whether it succeeded or not.
    """
    request = build_completion_request(payload, settings.xai_model)
    client = client_factory(settings)
    try:
        return await stream_summary(request, client, on_tool_call=on_tool_call)
    finally:
        await client.close()


async def summarize_with_retry(
    payload: Any,
    settings: PipelineSettings,
    client_factory: Callable[[PipelineSettings], Any] = build_completion_client,
    on_tool_call: Optional[ToolCallHandler] = None,
    max_attempts: int = MAX_ATTEMPTS,
) -> str:
    """
    Summarize ``payload``, retrying on gateway timeouts without backoff.

    Each retry re-issues the full request; nothing is persisted until a
    summary is returned, so re-issuing is safe.

    Raises:
        CompletionError: The last transient error once attempts run out, or
            the first non-transient error immediately
        RequestBuildError: If the payload cannot be serialized
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            return await summarize_once(
                payload,
                settings,
                client_factory=client_factory,
                on_tool_call=on_tool_call,
            )
        except CompletionError as e:
            if not is_transient(e):
                logger.error("Summarization failed (attempt %d/%d): %s", attempt, max_attempts, e)
                raise

            if attempt >= max_attempts:
                logger.error(
                    "Max attempts exceeded (%d). Last error: %s",
                    max_attempts,
                    e,
                )
                raise

            logger.warning(
                "summarize attempt %d failed due to gateway timeout, retrying...",
                attempt,
            )
