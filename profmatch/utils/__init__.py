"""Utility modules for ProfMatch.

- **errors** -- Domain exception hierarchy rooted at ProfMatchError; every
  error carries ``retryable`` / ``user_correctable`` flags.
- **concurrency** -- per-call timeouts for external service calls.
- **logging** -- structlog setup with a dual console/JSON renderer.
- **retry** (not re-exported here) -- caller-level ingestion retry helper.
"""

# -- Domain exception hierarchy --------------------------------------------
from profmatch.utils.errors import (
    ConfigurationError,
    EmbeddingError,
    ExtractionError,
    FetchError,
    GenerationError,
    IngestionFailedError,
    ProfMatchError,
    VectorIndexError,
)

# -- Async timeout helper --------------------------------------------------
from profmatch.utils.concurrency import call_with_timeout

# -- Structured logging setup ----------------------------------------------
from profmatch.utils.logging import configure_logging, get_logger

__all__ = [
    "ConfigurationError",
    "EmbeddingError",
    "ExtractionError",
    "FetchError",
    "GenerationError",
    "IngestionFailedError",
    "ProfMatchError",
    "VectorIndexError",
    "call_with_timeout",
    "configure_logging",
    "get_logger",
]
