"""Instructor page fetcher using httpx and BeautifulSoup.

Downloads HTML with an async httpx client and parses it with
BeautifulSoup's built-in ``html.parser``.  URLs are validated locally
before any request is made.
"""

from __future__ import annotations

from urllib.parse import urlsplit

import httpx
import structlog
from bs4 import BeautifulSoup

from profmatch.interfaces.page_fetcher import FetchedPage, IPageFetcher
from profmatch.utils.errors import FetchError, FetchErrorKind

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_TIMEOUT = 10.0
_DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; ProfMatch/0.1; +https://github.com/profmatch)",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}
_ALLOWED_SCHEMES = frozenset({"http", "https"})


def validate_url(url: str) -> str:
    """Return the stripped *url* or raise ``FetchError(INVALID_URL)``.

    Only absolute ``http``/``https`` URLs with a host are accepted.
    """
    candidate = (url or "").strip()
    if not candidate:
        raise FetchError(message="URL is empty", kind=FetchErrorKind.INVALID_URL)
    try:
        parts = urlsplit(candidate)
    except ValueError as exc:
        raise FetchError(
            message=f"Malformed URL: {candidate!r}",
            kind=FetchErrorKind.INVALID_URL,
        ) from exc
    if parts.scheme.lower() not in _ALLOWED_SCHEMES or not parts.hostname:
        raise FetchError(
            message=f"Malformed URL (expected http(s)://host/...): {candidate!r}",
            kind=FetchErrorKind.INVALID_URL,
        )
    if any(ch.isspace() for ch in candidate):
        raise FetchError(
            message=f"Malformed URL (contains whitespace): {candidate!r}",
            kind=FetchErrorKind.INVALID_URL,
        )
    return candidate


class HttpxPageFetcher(IPageFetcher):
    """Page fetcher backed by ``httpx.AsyncClient`` + BeautifulSoup.

    The client is injected for testability and connection reuse; when
    omitted, the fetcher creates and owns one (close it with
    :meth:`aclose`).
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = _DEFAULT_TIMEOUT,
    ) -> None:
        self._owns_client = http_client is None
        self._timeout = timeout
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers=_DEFAULT_HEADERS,
            follow_redirects=True,
        )

    async def fetch(self, url: str) -> FetchedPage:
        """Fetch *url* and parse the body into a BeautifulSoup tree."""
        target = validate_url(url)
        try:
            response = await self._client.get(
                target,
                headers=_DEFAULT_HEADERS,
                timeout=self._timeout,
                follow_redirects=True,
            )
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise FetchError(
                message=f"Timeout fetching {target}: {exc}",
                kind=FetchErrorKind.NETWORK,
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise FetchError(
                message=f"HTTP {status} for {target}",
                kind=FetchErrorKind.STATUS,
                status_code=status,
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.InvalidURL as exc:
            raise FetchError(
                message=f"Malformed URL: {target!r}",
                kind=FetchErrorKind.INVALID_URL,
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPError as exc:
            raise FetchError(
                message=f"HTTP error fetching {target}: {exc}",
                kind=FetchErrorKind.NETWORK,
                provider_name=self.get_provider_name(),
            ) from exc

        document = BeautifulSoup(response.text, "html.parser")
        logger.info(
            "page_fetched",
            url=target,
            final_url=str(response.url),
            status=response.status_code,
            html_length=len(response.text),
        )
        return FetchedPage(
            url=target,
            final_url=str(response.url),
            status_code=response.status_code,
            document=document,
        )

    async def aclose(self) -> None:
        """Close the HTTP client if this fetcher created it."""
        if self._owns_client:
            await self._client.aclose()

    def get_provider_name(self) -> str:
        return "httpx_fetcher"
