"""Summary Persistence Module

Writes the summary record to a local JSON file (authoritative) and mirrors
it into MongoDB when a connection string is configured (best-effort).

Upsert strategy:
  - Document id is the model identifier, optionally suffixed with a
    millisecond-precision UTC timestamp ('timestamped' policy)
  - update_one(..., upsert=True) filtered by _id: insert when absent,
    overwrite in place otherwise
  - updated_at is set by the server via $currentDate
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional

from pymongo import AsyncMongoClient

from .config import PipelineSettings
from .errors import PersistenceError
from .models import SummaryRecord

logger = logging.getLogger(__name__)

FALLBACK_DOCUMENT_ID = "latest-summary"


def format_timestamp(now: datetime) -> str:
    """UTC timestamp like 20251216T010530.123Z."""
    now = now.astimezone(timezone.utc)
    return now.strftime("%Y%m%dT%H%M%S") + f".{now.microsecond // 1000:03d}Z"


def derive_document_id(model: str, policy: str = "timestamped",
                       now: Optional[datetime] = None) -> str:
    """
    Derive the store key for a summary.

    Args:
        model: Model identifier from the record
        policy: 'model' for overwrite-by-model, 'timestamped' for one
            document per run
        now: Clock override for the timestamp

    Returns:
        The document id string
    """
    base = model or FALLBACK_DOCUMENT_ID
    if policy == "model":
        return base
    return f"{base}-{format_timestamp(now or datetime.now(timezone.utc))}"


def write_summary_file(record: SummaryRecord, path: Path | str) -> Path:
    """
    Write the record as pretty-printed JSON, replacing any existing file.

    Raises:
        PersistenceError: If the file cannot be written
    """
    path = Path(path)
    try:
        if path.parent != Path("."):
            path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            json.dump(record.to_document(), f, ensure_ascii=False, indent=2)
    except OSError as e:
        logger.exception("Failed to save summary to %s", path)
        raise PersistenceError(f"Failed to write summary file {path}: {e}") from e

    logger.info("✓ Saved summary to %s", path)
    return path


async def upsert_summary(
    record: SummaryRecord,
    settings: PipelineSettings,
    client_factory: Optional[Callable[[str], Any]] = None,
    now: Optional[datetime] = None,
) -> Optional[str]:
    """
    Mirror the record into MongoDB without blocking the event loop. Never
    raises.

    Returns:
        The document id on success; None when the store is disabled or the
        upsert failed (failure is logged, the run still succeeds)
    """
    if not settings.store_enabled:
        logger.debug("MONGO_URI not set; skipping MongoDB upsert")
        return None

    client = None
    try:
        client = (client_factory or AsyncMongoClient)(settings.mongo_uri)
        collection = client[settings.mongo_db][settings.mongo_collection]

        doc_id = derive_document_id(record.model, settings.id_policy, now=now)
        document = record.to_document()
        document["_id"] = doc_id

        await collection.update_one(
            {"_id": doc_id},
            {"$set": document, "$currentDate": {"updated_at": True}},
            upsert=True,
        )
        logger.info(
            'Upserted summary into MongoDB collection "%s" (db: "%s", id: "%s")',
            settings.mongo_collection,
            settings.mongo_db,
            doc_id,
        )
        return doc_id
    except Exception as e:
        logger.error("Failed to upsert summary in MongoDB (non-fatal): %s", e, exc_info=True)
        return None
    finally:
        if client is not None:
            try:
                await client.close()
            except Exception:
                logger.debug("Ignoring error while closing MongoDB client", exc_info=True)
