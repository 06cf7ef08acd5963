"""
X-to-Grokipedia Summary Pipeline

Runs one end-to-end pass: fetch posts from X, ask the xAI agent (with web
search, X search and code execution tools) for Grokipedia edit suggestions,
extract the JSON array from its streamed answer, and persist it.

Pipeline Steps:
1. Fetch the X search payload
2. Stream the tool-augmented summary (retrying gateway timeouts)
3. Extract and validate the JSON array
4. Save summary.json, then mirror into MongoDB if configured

Only the file write is authoritative: a failing MongoDB upsert is logged and
the run still succeeds.
"""

import asyncio
import json
import logging
import time
from typing import Any, Callable, Dict, Optional, Tuple

from .config import PipelineSettings
from .extractor import build_summary_record
from .fetcher import XSearchFetcher
from .models import SummaryRecord
from .persistence import upsert_summary, write_summary_file
from .streaming import ToolCallHandler, build_completion_client
from .summarizer import summarize_with_retry

logger = logging.getLogger(__name__)


async def run_pipeline_async(
    settings: PipelineSettings,
    query: Optional[str] = None,
    preset: Optional[str] = None,
    fetcher: Optional[XSearchFetcher] = None,
    client_factory: Optional[Callable[[PipelineSettings], Any]] = None,
    store_client_factory: Optional[Callable[[str], Any]] = None,
    on_tool_call: Optional[ToolCallHandler] = None,
) -> Tuple[SummaryRecord, Dict[str, Any]]:
    """
    Run the pipeline once.

    Args:
        settings: Read-once configuration for this run
        query: Free-text X search query (default: 'government')
        preset: Named query preset; takes precedence over ``query``
        fetcher: X search client (built from settings when omitted)
        client_factory: Builds the completion client for each attempt
        store_client_factory: MongoDB client factory (AsyncMongoClient default)
        on_tool_call: Receives tool-call events from the stream

    Returns:
        Tuple of (summary_record, outputs) where outputs holds the summary
        file path and the MongoDB document id (None if skipped or failed)

    Raises:
        PipelineError: For any fatal stage failure
    """
    job_start = time.time()
    fetcher = fetcher or XSearchFetcher(settings.bearer_token)

    # ========== STEP 1: FETCH X PAYLOAD ==========
    t0 = time.time()
    label = f"preset {preset}" if preset else f"query: {query or 'government'}"
    logger.info("STEP 1/4: Fetching X payload for %s", label)
    payload = await fetcher.search(query=query, preset=preset)
    logger.info("✓ Fetched X payload in %.2fs", time.time() - t0)
    logger.info(
        "=== Raw X payload for %s ===\n%s",
        label,
        json.dumps(payload, ensure_ascii=False, indent=2),
    )

    # ========== STEP 2: STREAM SUMMARY ==========
    t1 = time.time()
    logger.info("STEP 2/4: Summarizing with xAI (%s)", settings.xai_model)
    summary = await summarize_with_retry(
        payload,
        settings,
        client_factory=client_factory or build_completion_client,
        on_tool_call=on_tool_call,
    )
    logger.info("✓ Summary streamed in %.2fs (%d chars)", time.time() - t1, len(summary))
    logger.info("=== xAI summary (%s) ===\n%s", settings.xai_model, summary)

    # ========== STEP 3: EXTRACT RESULT ==========
    logger.info("STEP 3/4: Extracting result (mode=%s)", settings.extraction_mode)
    record = build_summary_record(summary, settings.xai_model, settings.extraction_mode)

    # ========== STEP 4: PERSIST ==========
    logger.info("STEP 4/4: Persisting summary")
    outputs: Dict[str, Any] = {"summary": write_summary_file(record, settings.output_path)}
    outputs["mongo_id"] = await upsert_summary(
        record, settings, client_factory=store_client_factory
    )

    logger.debug("Pipeline processing completed in %.2fs", time.time() - job_start)
    return record, outputs


def run_pipeline(settings: PipelineSettings, **kwargs) -> Tuple[SummaryRecord, Dict[str, Any]]:
    """Synchronous wrapper around ``run_pipeline_async``."""
    return asyncio.run(run_pipeline_async(settings, **kwargs))
