"""Unit tests for the OpenAI and Nomic embedding adapters."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from profmatch.config.settings import Settings
from profmatch.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider
from profmatch.providers.embedding.openai_embedding_provider import (
    OpenAIEmbeddingProvider,
    map_openai_error,
)
from profmatch.utils.errors import EmbeddingError, EmbeddingErrorKind

_REQUEST = httpx.Request("POST", "https://api.test/v1/embeddings")


def _status_error(cls: type[openai.APIStatusError], status: int) -> openai.APIStatusError:
    response = httpx.Response(status, request=_REQUEST)
    return cls("failure", response=response, body=None)


@pytest.mark.parametrize(
    ("exc", "kind"),
    [
        (openai.APIConnectionError(request=_REQUEST), EmbeddingErrorKind.SERVICE_UNAVAILABLE),
        (openai.APITimeoutError(request=_REQUEST), EmbeddingErrorKind.SERVICE_UNAVAILABLE),
        (_status_error(openai.RateLimitError, 429), EmbeddingErrorKind.SERVICE_UNAVAILABLE),
        (_status_error(openai.InternalServerError, 500), EmbeddingErrorKind.SERVICE_UNAVAILABLE),
        (_status_error(openai.BadRequestError, 400), EmbeddingErrorKind.REJECTED),
        (_status_error(openai.AuthenticationError, 401), EmbeddingErrorKind.SERVICE_UNAVAILABLE),
    ],
    ids=["connection", "timeout", "rate_limit", "server_error", "bad_request", "auth"],
)
def test_map_openai_error(exc: openai.APIError, kind: EmbeddingErrorKind) -> None:
    mapped = map_openai_error(exc, "openai_embedding")
    assert mapped.kind == kind
    assert mapped.provider_name == "openai_embedding"


class TestOpenAIEmbeddingProvider:
    def _provider(self, **overrides) -> OpenAIEmbeddingProvider:
        return OpenAIEmbeddingProvider(Settings(openai_api_key="sk-test", **overrides))

    def test_defaults(self) -> None:
        provider = self._provider()
        assert provider.get_dimension() == 1536
        assert provider.get_provider_name() == "openai_embedding"
        assert provider.is_available()

    def test_compatible_endpoint_label(self) -> None:
        provider = self._provider(
            openai_base_url="https://api.together.xyz/v1",
            openai_embedding_model="BAAI/bge-base-en-v1.5",
        )
        assert provider.get_provider_name() == "openai-compatible_embedding"
        assert provider.get_dimension() == 768

    @pytest.mark.asyncio
    async def test_returns_first_embedding(self) -> None:
        provider = self._provider()
        response = SimpleNamespace(data=[SimpleNamespace(embedding=[0.1, 0.2])], usage=None)
        provider._client.embeddings.create = AsyncMock(return_value=response)
        assert await provider.embed_single("text") == [0.1, 0.2]

    @pytest.mark.asyncio
    async def test_empty_data_returns_none(self) -> None:
        provider = self._provider()
        provider._client.embeddings.create = AsyncMock(
            return_value=SimpleNamespace(data=[], usage=None)
        )
        assert await provider.embed_single("text") is None

    @pytest.mark.asyncio
    async def test_sdk_error_mapped(self) -> None:
        provider = self._provider()
        provider._client.embeddings.create = AsyncMock(
            side_effect=_status_error(openai.BadRequestError, 400)
        )
        with pytest.raises(EmbeddingError) as info:
            await provider.embed_single("x" * 100_000)
        assert info.value.kind == EmbeddingErrorKind.REJECTED
        assert info.value.user_correctable


def _route_async_client(monkeypatch: pytest.MonkeyPatch, handler) -> list[str]:
    """Point every ``httpx.AsyncClient`` at *handler*; return the requested URLs."""
    real_client = httpx.AsyncClient
    seen: list[str] = []

    def recording(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return handler(request)

    monkeypatch.setattr(
        httpx,
        "AsyncClient",
        lambda **kwargs: real_client(transport=httpx.MockTransport(recording), **kwargs),
    )
    return seen


class TestNomicEmbeddingProvider:
    def _provider(self) -> NomicEmbeddingProvider:
        return NomicEmbeddingProvider(Settings(ollama_base_url="http://ollama.local:11434/"))

    def test_is_available_makes_no_network_call(self, monkeypatch: pytest.MonkeyPatch) -> None:
        provider = self._provider()
        seen = _route_async_client(monkeypatch, lambda request: httpx.Response(200))
        monkeypatch.setattr(httpx, "get", MagicMock(side_effect=AssertionError("network call")))
        assert provider.is_available()
        assert seen == []

    @pytest.mark.asyncio
    async def test_validate_credentials_server_up(self, monkeypatch: pytest.MonkeyPatch) -> None:
        provider = self._provider()
        seen = _route_async_client(monkeypatch, lambda request: httpx.Response(200, json={"models": []}))
        assert await provider.validate_credentials() is True
        assert seen == ["http://ollama.local:11434/api/tags"]

    @pytest.mark.asyncio
    async def test_validate_credentials_server_down(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        provider = self._provider()
        _route_async_client(monkeypatch, refuse)
        assert await provider.validate_credentials() is False

    @pytest.mark.asyncio
    async def test_validate_credentials_unconfigured(self) -> None:
        provider = NomicEmbeddingProvider(Settings(ollama_base_url=""))
        assert not provider.is_available()
        assert await provider.validate_credentials() is False
