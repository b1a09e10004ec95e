"""Caller-level retry for the ingestion pipeline.

The pipeline itself never retries.  Callers that want resilience against
transient outages (network blips, embedding rate limits, a 503 from the
rating site) wrap it with :func:`retry_ingestion`, which re-runs the whole
pipeline only while the failure is flagged ``retryable``.  User-correctable
failures (bad URL, missing fields) return immediately.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from profmatch.models.pipeline import IngestionState
    from profmatch.services.ingestion_service import IngestionPipeline

logger = structlog.get_logger(logger_name=__name__)


async def retry_ingestion(
    pipeline: IngestionPipeline,
    url: str,
    attempts: int = 3,
    backoff: float = 1.0,
) -> IngestionState:
    """Run *pipeline* for *url* up to *attempts* times.

    Waits ``backoff * attempt`` seconds between attempts.  Returns the state
    of the last run, successful or not.
    """
    if attempts < 1:
        raise ValueError("attempts must be >= 1")

    state = await pipeline.run(url)
    for attempt in range(1, attempts):
        if state.succeeded or state.error is None or not state.error.retryable:
            break
        delay = backoff * attempt
        logger.warning(
            "ingestion_retry",
            url=url,
            attempt=attempt + 1,
            max_attempts=attempts,
            failed_stage=state.failed_stage.value if state.failed_stage else None,
            error=state.error.message,
            backoff_s=delay,
        )
        if delay > 0:
            await asyncio.sleep(delay)
        state = await pipeline.run(url)
    return state
