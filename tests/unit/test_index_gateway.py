"""Unit tests for VectorIndexGateway keying, ordering and schema handling."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from profmatch.interfaces.vector_index_provider import IndexMatch, IVectorIndexProvider
from profmatch.models.instructor import EmbeddingVector, IndexEntry
from profmatch.services.index_gateway import (
    VectorIndexGateway,
    metadata_to_record,
    record_to_metadata,
    validate_key,
)
from profmatch.utils.errors import VectorIndexError, VectorIndexErrorKind
from tests.conftest import InMemoryIndexProvider, make_record, unit_vector


def _vec(values: list[float]) -> EmbeddingVector:
    return EmbeddingVector(values=values)


def _mock_provider(matches: list[IndexMatch]) -> MagicMock:
    mock = MagicMock(spec=IVectorIndexProvider)
    mock.query = AsyncMock(return_value=matches)
    mock.upsert = AsyncMock(return_value=None)
    mock.count = AsyncMock(return_value=len(matches))
    mock.get_namespace.return_value = "ns1"
    mock.get_provider_name.return_value = "mock_index"
    return mock


def _match(key: str, score: float) -> IndexMatch:
    return IndexMatch(key=key, score=score, metadata=record_to_metadata(make_record(name=key)))


class TestMetadataSchema:
    def test_round_trip(self) -> None:
        rec = make_record(review_snippets=["a", "b"], source_url="https://x.test/1")
        meta = record_to_metadata(rec)
        assert all(isinstance(v, str) for v in meta.values())
        assert metadata_to_record(meta) == rec

    def test_missing_source_url_stored_as_empty(self) -> None:
        meta = record_to_metadata(make_record())
        assert meta["source_url"] == ""
        assert metadata_to_record(meta).source_url is None

    def test_malformed_reviews(self) -> None:
        meta = record_to_metadata(make_record())
        meta["review_snippets"] = "{not json"
        with pytest.raises(ValueError):
            metadata_to_record(meta)


class TestKeys:
    def test_strips(self) -> None:
        assert validate_key("  J. Doe ") == "J. Doe"

    @pytest.mark.parametrize("key", ["", "   ", "a" * 513, "bad\x00key", "tab\tkey"])
    def test_invalid(self, key: str) -> None:
        with pytest.raises(VectorIndexError) as info:
            validate_key(key)
        assert info.value.kind == VectorIndexErrorKind.INVALID_KEY


class TestUpsert:
    @pytest.mark.asyncio
    async def test_keyed_by_name(self, index_provider: InMemoryIndexProvider) -> None:
        gateway = VectorIndexGateway(index_provider, dimension=4)
        key = await gateway.upsert(make_record(), _vec([0.1] * 4))
        assert key == "J. Doe"
        assert set(index_provider.entries) == {"J. Doe"}

    @pytest.mark.asyncio
    async def test_last_write_wins(self, index_provider: InMemoryIndexProvider) -> None:
        gateway = VectorIndexGateway(index_provider, dimension=4)
        await gateway.upsert(make_record(rating_raw="3.0"), _vec([0.1] * 4))
        await gateway.upsert(make_record(rating_raw="4.8"), _vec([0.2] * 4))
        assert len(index_provider.entries) == 1
        assert index_provider.entries["J. Doe"][1]["rating_raw"] == "4.8"

    @pytest.mark.asyncio
    async def test_entry_key_is_stripped(self, index_provider: InMemoryIndexProvider) -> None:
        gateway = VectorIndexGateway(index_provider, dimension=4)
        entry = IndexEntry(key="  Room 12 ", vector=_vec([0.3] * 4), metadata=make_record())
        key = await gateway.upsert_entry(entry)
        assert key == "Room 12"
        stored_vector, stored_meta = index_provider.entries["Room 12"]
        assert stored_vector == [0.3] * 4
        assert stored_meta["name"] == "J. Doe"

    @pytest.mark.asyncio
    async def test_dimension_mismatch(self, index_provider: InMemoryIndexProvider) -> None:
        gateway = VectorIndexGateway(index_provider, dimension=4)
        with pytest.raises(VectorIndexError) as info:
            await gateway.upsert(make_record(), _vec([0.1] * 3))
        assert info.value.kind == VectorIndexErrorKind.DIMENSION_MISMATCH
        assert index_provider.upsert_calls == 0

    @pytest.mark.asyncio
    async def test_provider_failure_is_unavailable(self) -> None:
        provider = _mock_provider([])
        provider.upsert.side_effect = VectorIndexError("down", kind=VectorIndexErrorKind.UNAVAILABLE)
        gateway = VectorIndexGateway(provider, dimension=2)
        with pytest.raises(VectorIndexError) as info:
            await gateway.upsert(make_record(), _vec([0.1, 0.2]))
        assert info.value.retryable

    @pytest.mark.asyncio
    async def test_timeout_is_unavailable(self) -> None:
        async def _slow(*args, **kwargs):
            await asyncio.sleep(1)

        provider = _mock_provider([])
        provider.upsert.side_effect = _slow
        gateway = VectorIndexGateway(provider, dimension=2, timeout=0.01)
        with pytest.raises(VectorIndexError) as info:
            await gateway.upsert(make_record(), _vec([0.1, 0.2]))
        assert info.value.kind == VectorIndexErrorKind.UNAVAILABLE

    def test_namespace_mismatch_rejected(self, index_provider: InMemoryIndexProvider) -> None:
        with pytest.raises(ValueError):
            VectorIndexGateway(index_provider, dimension=4, namespace="other")


class TestQuery:
    @pytest.mark.asyncio
    async def test_sorted_descending_and_trimmed(self) -> None:
        provider = _mock_provider(
            [_match("C", 0.2), _match("A", 0.9), _match("D", 0.5), _match("B", 0.7)]
        )
        gateway = VectorIndexGateway(provider, dimension=2)
        result = await gateway.query(_vec([0.1, 0.2]), k=3)
        assert [m.record.name for m in result.matches] == ["A", "B", "D"]
        scores = [m.similarity_score for m in result.matches]
        assert scores == sorted(scores, reverse=True)

    @pytest.mark.asyncio
    async def test_ties_broken_by_key(self) -> None:
        provider = _mock_provider([_match("Zed", 0.5), _match("Amy", 0.5), _match("Kim", 0.5)])
        gateway = VectorIndexGateway(provider, dimension=2)
        result = await gateway.query(_vec([0.1, 0.2]), k=3)
        assert [m.record.name for m in result.matches] == ["Amy", "Kim", "Zed"]

    @pytest.mark.asyncio
    async def test_negative_similarities_keep_their_order(self) -> None:
        provider = _mock_provider([_match("Amy", -1.0), _match("Zed", -0.2), _match("Kim", 0.4)])
        gateway = VectorIndexGateway(provider, dimension=2)
        result = await gateway.query(_vec([1.0, 0.0]), k=3)
        assert [m.record.name for m in result.matches] == ["Kim", "Zed", "Amy"]
        assert [m.similarity_score for m in result.matches] == [0.4, -0.2, -1.0]

    @pytest.mark.asyncio
    async def test_ties_at_cutoff_resolved_by_key(self) -> None:
        names = ["Dee", "Cal", "Bea", "Abe"]

        async def _reverse_key_order(values, top_k):
            # Returns tied entries in the opposite order to the key rule.
            return [_match(name, 0.5) for name in names][:top_k]

        provider = _mock_provider([])
        provider.query.side_effect = _reverse_key_order
        gateway = VectorIndexGateway(provider, dimension=2)

        result = await gateway.query(_vec([0.1, 0.2]), k=3)

        assert [m.record.name for m in result.matches] == ["Abe", "Bea", "Cal"]
        assert provider.query.await_args_list[-1].args[1] > len(names)

    @pytest.mark.asyncio
    async def test_no_refetch_when_cutoff_is_strict(self) -> None:
        provider = _mock_provider(
            [_match("A", 0.9), _match("B", 0.8), _match("C", 0.7), _match("D", 0.1)]
        )
        gateway = VectorIndexGateway(provider, dimension=2)
        await gateway.query(_vec([0.1, 0.2]), k=3)
        assert provider.query.await_count == 1

    @pytest.mark.asyncio
    async def test_top_three_of_many(self, index_provider: InMemoryIndexProvider) -> None:
        gateway = VectorIndexGateway(index_provider, dimension=6)
        for i, name in enumerate(["P0", "P1", "P2", "P3", "P4", "P5"]):
            weights = [0.0] * 6
            weights[0] = 1.0 - i * 0.15
            weights[i] += 0.3
            await gateway.upsert(make_record(name=name), _vec(weights))
        result = await gateway.query(_vec(unit_vector(6, 0)), k=3)
        assert len(result) == 3
        assert [m.record.name for m in result.matches] == ["P0", "P1", "P2"]

    @pytest.mark.asyncio
    async def test_fewer_entries_than_k(self, index_provider: InMemoryIndexProvider) -> None:
        gateway = VectorIndexGateway(index_provider, dimension=4)
        await gateway.upsert(make_record(), _vec([0.1] * 4))
        result = await gateway.query(_vec([0.1] * 4), k=3)
        assert len(result) == 1

    @pytest.mark.asyncio
    async def test_empty_index(self, index_provider: InMemoryIndexProvider) -> None:
        gateway = VectorIndexGateway(index_provider, dimension=4)
        assert (await gateway.query(_vec([0.1] * 4), k=3)).is_empty

    @pytest.mark.asyncio
    async def test_k_must_be_positive(self, index_provider: InMemoryIndexProvider) -> None:
        gateway = VectorIndexGateway(index_provider, dimension=4)
        with pytest.raises(ValueError):
            await gateway.query(_vec([0.1] * 4), k=0)

    @pytest.mark.asyncio
    async def test_query_dimension_checked(self, index_provider: InMemoryIndexProvider) -> None:
        gateway = VectorIndexGateway(index_provider, dimension=4)
        with pytest.raises(VectorIndexError) as info:
            await gateway.query(_vec([0.1] * 5), k=1)
        assert info.value.kind == VectorIndexErrorKind.DIMENSION_MISMATCH

    @pytest.mark.asyncio
    async def test_malformed_metadata_skipped(self) -> None:
        broken = IndexMatch(key="Broken", score=0.99, metadata={"name": "Broken"})
        provider = _mock_provider([broken, _match("Good", 0.5)])
        gateway = VectorIndexGateway(provider, dimension=2)
        result = await gateway.query(_vec([0.1, 0.2]), k=3)
        assert [m.record.name for m in result.matches] == ["Good"]


class TestStatsAndDelete:
    @pytest.mark.asyncio
    async def test_stats(self, index_provider: InMemoryIndexProvider) -> None:
        gateway = VectorIndexGateway(index_provider, dimension=4)
        await gateway.upsert(make_record(), _vec([0.1] * 4))
        stats = await gateway.stats()
        assert (stats.namespace, stats.total_entries, stats.dimension) == ("ns1", 1, 4)

    @pytest.mark.asyncio
    async def test_delete(self, index_provider: InMemoryIndexProvider) -> None:
        gateway = VectorIndexGateway(index_provider, dimension=4)
        await gateway.upsert(make_record(), _vec([0.1] * 4))
        assert await gateway.delete("J. Doe") is True
        assert await gateway.delete("J. Doe") is False
