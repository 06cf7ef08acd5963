"""Pipeline CLI Entry Point

Provides the command-line interface for the X-to-Grokipedia summary
pipeline. Handles argument parsing, logging configuration, settings
assembly and exit codes.

Usage:
    python -m src.run_pipeline "climate summit"
    python -m src.run_pipeline --preset sports --output out/summary.json
"""

# run_pipeline.py
import argparse
import logging
import time
from pathlib import Path

from src.grokipedia_pipeline.config import PipelineSettings
from src.grokipedia_pipeline.errors import PipelineError
from src.grokipedia_pipeline.extractor import EXTRACTION_MODES
from src.grokipedia_pipeline.fetcher import QUERY_PRESETS
from src.grokipedia_pipeline.pipeline import run_pipeline


def configure_logging() -> None:
    """Configure logging with both console and file output.

    Sets up:
      - Root logger at DEBUG level
      - Console handler at INFO level for user-facing messages
      - File handler at DEBUG level for detailed troubleshooting
      - Reduced verbosity for httpx, openai and pymongo loggers
    """
    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)
    log_file = log_dir / "pipeline.log"

    # Root logger
    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    )

    # Console handler: high-level INFO+
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)

    # File handler: detailed DEBUG+
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)

    # Clear existing handlers to avoid duplicates if run multiple times
    logger.handlers.clear()
    logger.addHandler(console_handler)
    logger.addHandler(file_handler)


def main(argv=None) -> int:
    """
    CLI entrypoint for the X-to-Grokipedia summary pipeline.

    Returns a Unix-style exit code: 0 on success (including when only the
    MongoDB mirror failed), 1 on any fatal pipeline error.
    """
    configure_logging()
    logger = logging.getLogger(__name__)

    parser = argparse.ArgumentParser(
        description="Summarize X posts into Grokipedia edit suggestions"
    )
    parser.add_argument(
        "query",
        nargs="?",
        default="government",
        help="X search query (default: government).",
    )
    parser.add_argument(
        "--preset",
        choices=sorted(QUERY_PRESETS),
        default=None,
        help="Use a named search instead of the free-text query.",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Summary file path (default: $SUMMARY_OUTPUT_PATH or summary.json).",
    )
    parser.add_argument(
        "--extraction",
        choices=EXTRACTION_MODES,
        default=None,
        help="How to recover the result from the streamed text.",
    )
    parser.add_argument(
        "--id-policy",
        choices=("timestamped", "model"),
        default=None,
        help="MongoDB document id policy.",
    )

    args = parser.parse_args(argv)

    logger.info("=== Starting X-to-Grokipedia summary pipeline ===")

    try:
        start_time = time.time()

        settings = PipelineSettings.from_env(
            output_path=args.output,
            extraction_mode=args.extraction,
            id_policy=args.id_policy,
        )
        logger.info("Model: %s", settings.xai_model)
        logger.info("Output: %s", settings.output_path)
        logger.info("MongoDB: %s", "enabled" if settings.store_enabled else "disabled")

        record, outputs = run_pipeline(
            settings,
            query=args.query,
            preset=args.preset,
        )

        elapsed_time = time.time() - start_time

        logger.info("=" * 70)
        logger.info("Pipeline completed successfully in %.2fs", elapsed_time)
        if isinstance(record.summary, list):
            logger.info("  Entries:    %d", len(record.summary))
        logger.info("  Summary:    %s", outputs["summary"])
        logger.info("  MongoDB id: %s", outputs.get("mongo_id") or "-")
        logger.info("=" * 70)

    except PipelineError as e:
        logger.error("Pipeline failed: %s", e)
        return 1
    except Exception as e:
        logger.exception(f"Pipeline failed with an unhandled exception: {e}")
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
