"""Pipeline Configuration

Builds a single immutable settings bundle at startup and hands it to each
component explicitly, so nothing downstream reads the environment on its own.

Environment variables:
  BEARER: Required X API bearer token
  XAI_API_KEY: Required xAI API key
  XAI_MODEL: Completion model (default: grok-4-fast-non-reasoning)
  XAI_BASE_URL: OpenAI-compatible xAI endpoint (default: https://api.x.ai/v1)
  MONGO_URI: Optional; enables the MongoDB upsert when set
  MONGO_DB: Database name (default: grokipedia)
  MONGO_COLLECTION: Collection name (default: summaries)
  MONGO_ID_POLICY: 'timestamped' (default) or 'model'
  SUMMARY_OUTPUT_PATH: Summary file path (default: summary.json)
  EXTRACTION_MODE: 'first_last' (default), 'balanced' or 'raw'
"""

import os
from pathlib import Path
from typing import Literal, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigError

BEARER_ENV = "BEARER"
XAI_KEY_ENV = "XAI_API_KEY"
XAI_MODEL_ENV = "XAI_MODEL"
XAI_BASE_URL_ENV = "XAI_BASE_URL"
MONGO_URI_ENV = "MONGO_URI"
MONGO_DB_ENV = "MONGO_DB"
MONGO_COLLECTION_ENV = "MONGO_COLLECTION"
MONGO_ID_POLICY_ENV = "MONGO_ID_POLICY"
SUMMARY_OUTPUT_PATH_ENV = "SUMMARY_OUTPUT_PATH"
EXTRACTION_MODE_ENV = "EXTRACTION_MODE"

DEFAULT_XAI_MODEL = "grok-4-fast-non-reasoning"
DEFAULT_XAI_BASE_URL = "https://api.x.ai/v1"
DEFAULT_MONGO_DB = "grokipedia"
DEFAULT_MONGO_COLLECTION = "summaries"
DEFAULT_SUMMARY_OUTPUT_PATH = "summary.json"

ExtractionMode = Literal["first_last", "balanced", "raw"]
IdPolicy = Literal["timestamped", "model"]


class PipelineSettings(BaseModel):
    """Read-once configuration for a single pipeline run."""

    model_config = ConfigDict(frozen=True)

    bearer_token: str = Field(..., min_length=1)
    xai_api_key: str = Field(..., min_length=1)
    xai_model: str = DEFAULT_XAI_MODEL
    xai_base_url: str = DEFAULT_XAI_BASE_URL
    mongo_uri: Optional[str] = None
    mongo_db: str = DEFAULT_MONGO_DB
    mongo_collection: str = DEFAULT_MONGO_COLLECTION
    id_policy: IdPolicy = "timestamped"
    output_path: Path = Path(DEFAULT_SUMMARY_OUTPUT_PATH)
    extraction_mode: ExtractionMode = "first_last"

    @property
    def store_enabled(self) -> bool:
        return bool(self.mongo_uri)

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        use_dotenv: bool = True,
        **overrides,
    ) -> "PipelineSettings":
        """
        Assemble settings from the environment (and a local .env file).

        Credentials are checked before anything else so a misconfigured run
        fails before any network call.

        Args:
            environ: Mapping to read from (defaults to os.environ)
            use_dotenv: Load a .env file into os.environ first
            **overrides: Explicit values (e.g. from CLI flags); None is ignored

        Raises:
            ConfigError: If BEARER or XAI_API_KEY is missing, or a value is invalid
        """
        if use_dotenv and environ is None:
            load_dotenv()
        env = os.environ if environ is None else environ

        bearer = env.get(BEARER_ENV)
        if not bearer:
            raise ConfigError(
                f"Missing {BEARER_ENV} env var. Export a valid X API bearer token before running."
            )
        api_key = env.get(XAI_KEY_ENV)
        if not api_key:
            raise ConfigError(
                f"Missing {XAI_KEY_ENV} env var. Export a valid xAI API key before running."
            )

        values = {
            "bearer_token": bearer,
            "xai_api_key": api_key,
            "xai_model": env.get(XAI_MODEL_ENV) or DEFAULT_XAI_MODEL,
            "xai_base_url": env.get(XAI_BASE_URL_ENV) or DEFAULT_XAI_BASE_URL,
            "mongo_uri": env.get(MONGO_URI_ENV) or None,
            "mongo_db": env.get(MONGO_DB_ENV) or DEFAULT_MONGO_DB,
            "mongo_collection": env.get(MONGO_COLLECTION_ENV) or DEFAULT_MONGO_COLLECTION,
            "id_policy": env.get(MONGO_ID_POLICY_ENV) or "timestamped",
            "output_path": env.get(SUMMARY_OUTPUT_PATH_ENV) or DEFAULT_SUMMARY_OUTPUT_PATH,
            "extraction_mode": env.get(EXTRACTION_MODE_ENV) or "first_last",
        }
        values.update({k: v for k, v in overrides.items() if v is not None})

        try:
            return cls(**values)
        except ValidationError as exc:
            raise ConfigError(f"Invalid configuration: {exc}") from exc
