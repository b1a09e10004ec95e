"""Unit tests for EmbeddingClient validation, timeouts and caching."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from profmatch.interfaces.embedding_provider import IEmbeddingProvider
from profmatch.providers.cache.memory_cache import MemoryCacheProvider
from profmatch.services.embedding_client import EmbeddingClient
from profmatch.utils.errors import EmbeddingError, EmbeddingErrorKind
from tests.conftest import make_record


def _provider(payload) -> MagicMock:
    mock = MagicMock(spec=IEmbeddingProvider)
    mock.embed_single = AsyncMock(return_value=payload)
    mock.get_provider_name.return_value = "mock_embedding"
    mock.get_dimension.return_value = 3
    return mock


class TestValidation:
    @pytest.mark.asyncio
    async def test_valid_vector(self) -> None:
        client = EmbeddingClient(_provider([0.1, 0.2, 0.3]), expected_dimension=3)
        vector = await client.embed("text")
        assert vector.values == [0.1, 0.2, 0.3]

    @pytest.mark.asyncio
    async def test_integers_accepted_as_floats(self) -> None:
        vector = await EmbeddingClient(_provider([1, 0, 0])).embed("text")
        assert vector.values == [1.0, 0.0, 0.0]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [None, [], "0.1,0.2", [0.1, "x", 0.3], [0.1, float("nan")], [True, False], 42],
        ids=["none", "empty", "string", "mixed", "nan", "bools", "scalar"],
    )
    async def test_invalid_payload(self, payload) -> None:
        client = EmbeddingClient(_provider(payload))
        with pytest.raises(EmbeddingError) as info:
            await client.embed("text")
        assert info.value.kind == EmbeddingErrorKind.INVALID_RESPONSE
        assert not info.value.retryable

    @pytest.mark.asyncio
    async def test_wrong_dimension(self) -> None:
        client = EmbeddingClient(_provider([0.1, 0.2]), expected_dimension=3)
        with pytest.raises(EmbeddingError) as info:
            await client.embed("text")
        assert info.value.kind == EmbeddingErrorKind.INVALID_RESPONSE


class TestInputs:
    @pytest.mark.asyncio
    async def test_record_serialized_once(self) -> None:
        provider = _provider([0.1, 0.2, 0.3])
        record = make_record()
        await EmbeddingClient(provider).embed_record(record)
        provider.embed_single.assert_awaited_once_with(record.to_embedding_text())

    @pytest.mark.asyncio
    async def test_question_stripped(self) -> None:
        provider = _provider([0.1, 0.2, 0.3])
        await EmbeddingClient(provider).embed_question("  who teaches CS?  ")
        provider.embed_single.assert_awaited_once_with("who teaches CS?")

    @pytest.mark.asyncio
    async def test_blank_question_rejected_without_call(self) -> None:
        provider = _provider([0.1])
        with pytest.raises(EmbeddingError) as info:
            await EmbeddingClient(provider).embed_question("   ")
        assert info.value.kind == EmbeddingErrorKind.REJECTED
        provider.embed_single.assert_not_awaited()


class TestFailures:
    @pytest.mark.asyncio
    async def test_provider_error_propagates(self) -> None:
        provider = _provider(None)
        provider.embed_single.side_effect = EmbeddingError(
            "rate limited", kind=EmbeddingErrorKind.SERVICE_UNAVAILABLE
        )
        with pytest.raises(EmbeddingError) as info:
            await EmbeddingClient(provider).embed("text")
        assert info.value.retryable

    @pytest.mark.asyncio
    async def test_timeout_is_service_unavailable(self) -> None:
        async def _slow(text: str):
            await asyncio.sleep(1)
            return [0.1]

        provider = _provider(None)
        provider.embed_single.side_effect = _slow
        client = EmbeddingClient(provider, timeout=0.01)
        with pytest.raises(EmbeddingError) as info:
            await client.embed("text")
        assert info.value.kind == EmbeddingErrorKind.SERVICE_UNAVAILABLE


class TestCache:
    @pytest.mark.asyncio
    async def test_second_call_served_from_cache(self) -> None:
        provider = _provider([0.1, 0.2, 0.3])
        client = EmbeddingClient(provider, cache=MemoryCacheProvider())
        first = await client.embed("same text")
        second = await client.embed("same text")
        assert first == second
        assert provider.embed_single.await_count == 1

    @pytest.mark.asyncio
    async def test_invalid_response_not_cached(self) -> None:
        provider = _provider([])
        cache = MemoryCacheProvider()
        client = EmbeddingClient(provider, cache=cache)
        with pytest.raises(EmbeddingError):
            await client.embed("text")
        assert len(cache) == 0
