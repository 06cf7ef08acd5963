"""Pipeline Error Taxonomy

Every fatal condition the pipeline can hit is raised as a subclass of
``PipelineError`` so the CLI can report it on a single line and exit
non-zero. MongoDB failures are deliberately absent: the store upsert is
best-effort and never raises past the persistence module.
"""

from typing import Optional


class PipelineError(Exception):
    """Base class for fatal pipeline errors."""


class ConfigError(PipelineError):
    """Raised when a required setting is missing or invalid."""


class FetchError(PipelineError):
    """Raised when the X search request fails (transport or non-2xx)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RequestBuildError(PipelineError):
    """Raised when the payload cannot be serialized into the prompt."""


class CompletionError(PipelineError):
    """Fatal error from the completion service or its stream."""


class GatewayTimeoutError(CompletionError):
    """Upstream 504 before the first chunk arrived. Safe to retry."""


class MissingCompletionError(CompletionError):
    """The stream ended without any completion text."""


class ExtractionError(PipelineError):
    """Raised when no valid JSON array can be recovered from the summary."""


class PersistenceError(PipelineError):
    """Raised when the summary file cannot be written."""
