"""Unit tests for retry_ingestion."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from profmatch.models.pipeline import IngestionState
from profmatch.services.ingestion_service import IngestionPipeline
from profmatch.utils.errors import ExtractionError, FetchError, FetchErrorKind
from profmatch.utils.retry import retry_ingestion
from tests.conftest import make_record

URL = "https://example.com/p/1"


def _done() -> IngestionState:
    return (
        IngestionState(url=URL)
        .advance()
        .advance(record=make_record())
        .advance()
        .advance()
    )


def _transient() -> IngestionState:
    return IngestionState(url=URL).fail(FetchError(kind=FetchErrorKind.NETWORK))


def _permanent() -> IngestionState:
    return IngestionState(url=URL).advance().fail(ExtractionError.missing_field("name"))


def _pipeline(*states: IngestionState) -> MagicMock:
    pipeline = MagicMock(spec=IngestionPipeline)
    pipeline.run = AsyncMock(side_effect=list(states))
    return pipeline


@pytest.fixture
def no_sleep():
    with patch("profmatch.utils.retry.asyncio.sleep", new=AsyncMock()) as sleep:
        yield sleep


class TestRetryIngestion:
    @pytest.mark.asyncio
    async def test_success_first_try(self, no_sleep) -> None:
        pipeline = _pipeline(_done())
        state = await retry_ingestion(pipeline, URL, attempts=3)
        assert state.succeeded
        assert pipeline.run.await_count == 1
        no_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_retries_transient_then_succeeds(self, no_sleep) -> None:
        pipeline = _pipeline(_transient(), _transient(), _done())
        state = await retry_ingestion(pipeline, URL, attempts=3, backoff=0.5)
        assert state.succeeded
        assert pipeline.run.await_count == 3
        assert [c.args[0] for c in no_sleep.await_args_list] == [0.5, 1.0]

    @pytest.mark.asyncio
    async def test_user_correctable_not_retried(self, no_sleep) -> None:
        pipeline = _pipeline(_permanent(), _done())
        state = await retry_ingestion(pipeline, URL, attempts=3)
        assert not state.succeeded
        assert pipeline.run.await_count == 1

    @pytest.mark.asyncio
    async def test_gives_up_after_attempts(self, no_sleep) -> None:
        pipeline = _pipeline(_transient(), _transient())
        state = await retry_ingestion(pipeline, URL, attempts=2)
        assert state.error is not None and state.error.retryable
        assert pipeline.run.await_count == 2

    @pytest.mark.asyncio
    async def test_attempts_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            await retry_ingestion(_pipeline(), URL, attempts=0)
