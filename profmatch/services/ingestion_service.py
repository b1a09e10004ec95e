"""Ingestion pipeline: fetch → extract → embed → upsert.

:class:`IngestionPipeline` follows the Orchestrator pattern: it drives four
collaborators (page fetcher, field extractor, embedding client, index
gateway) that know nothing about each other.  Each run walks the stages of
:class:`~profmatch.models.pipeline.IngestionState` strictly in order:

    FETCHING → EXTRACTING → EMBEDDING → UPSERTING → DONE

The first stage that raises a :class:`ProfMatchError` ends the run in
``FAILED`` and no later stage executes, so an instructor is either fully
indexed or not touched at all.  There is no retry in here; callers decide
(see :func:`profmatch.utils.retry.retry_ingestion`).
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

import structlog

from profmatch.models.pipeline import IngestionStage, IngestionState
from profmatch.utils.concurrency import call_with_timeout
from profmatch.utils.errors import (
    FetchError,
    FetchErrorKind,
    IngestionFailedError,
    ProfMatchError,
)

if TYPE_CHECKING:
    from profmatch.interfaces.page_fetcher import IPageFetcher
    from profmatch.models.instructor import InstructorRecord
    from profmatch.services.embedding_client import EmbeddingClient
    from profmatch.services.field_extractor import FieldExtractor
    from profmatch.services.index_gateway import VectorIndexGateway

logger = structlog.get_logger(logger_name=__name__)


class IngestionPipeline:
    """Run one instructor URL through the four ingestion stages.

    Parameters
    ----------
    fetcher:
        Downloads and parses the page.
    extractor:
        Pulls the instructor fields out of the parsed page.
    embedding_client:
        Produces the validated vector for the record.
    index_gateway:
        Stores the record under its name.
    fetch_timeout:
        Per-call timeout for the fetch stage, in seconds.
    """

    def __init__(
        self,
        fetcher: IPageFetcher,
        extractor: FieldExtractor,
        embedding_client: EmbeddingClient,
        index_gateway: VectorIndexGateway,
        fetch_timeout: float | None = 10.0,
    ) -> None:
        self._fetcher = fetcher
        self._extractor = extractor
        self._embedding_client = embedding_client
        self._index_gateway = index_gateway
        self._fetch_timeout = fetch_timeout

    async def run(self, url: str) -> IngestionState:
        """Execute the pipeline and return the terminal state.

        Domain failures are recorded in the returned state rather than
        raised.  ``asyncio.CancelledError`` and programming errors still
        propagate.
        """
        state, _ = await self._execute(url)
        return state

    async def ingest(self, url: str) -> InstructorRecord:
        """Run the pipeline and return the stored record.

        Raises
        ------
        IngestionFailedError
            Carrying the failed stage and the original stage error.
        """
        state, error = await self._execute(url)
        if error is not None:
            stage = state.failed_stage or IngestionStage.FAILED
            raise IngestionFailedError(stage=stage.value, cause=error) from error
        if state.record is None:
            raise RuntimeError(f"ingestion of {url} finished without a record")
        return state.record

    # -- Internals -----------------------------------------------------------

    async def _execute(self, url: str) -> tuple[IngestionState, ProfMatchError | None]:
        state = IngestionState(url=url)
        started = time.perf_counter()
        logger.info("ingestion_started", url=url)

        try:
            page = await call_with_timeout(
                self._fetcher.fetch(url),
                self._fetch_timeout,
                on_timeout=lambda t: FetchError(
                    message=f"Timed out after {t}s fetching {url}",
                    kind=FetchErrorKind.NETWORK,
                    provider_name=self._fetcher.get_provider_name(),
                ),
                operation="fetch",
            )
            state = self._advance(state)

            record = self._extractor.extract(page.document, source_url=page.url)
            state = self._advance(state, record=record)

            vector = await self._embedding_client.embed_record(record)
            state = self._advance(state)

            await self._index_gateway.upsert(record, vector)
            state = self._advance(state)
        except ProfMatchError as exc:
            logger.warning(
                "ingestion_failed",
                url=url,
                stage=state.stage.value,
                error_type=type(exc).__name__,
                error=str(exc),
                retryable=exc.retryable,
                user_correctable=exc.user_correctable,
                duration_ms=round((time.perf_counter() - started) * 1000),
            )
            return state.fail(exc), exc

        logger.info(
            "ingestion_complete",
            url=url,
            key=state.record.name if state.record else None,
            duration_ms=round((time.perf_counter() - started) * 1000),
        )
        return state, None

    @staticmethod
    def _advance(state: IngestionState, **updates: object) -> IngestionState:
        nxt = state.advance(**updates)
        logger.debug("ingestion_stage", url=state.url, stage=nxt.stage.value)
        return nxt
