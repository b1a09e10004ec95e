"""Abstract base class for HTML fetch-and-parse providers.

Defines the contract for turning a URL into a parsed document tree.  The
ingestion pipeline only ever sees :class:`FetchedPage`; whether the HTML
came from httpx, a headless browser or a fixture file is the adapter's
business.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from bs4 import BeautifulSoup


@dataclass(frozen=True)
class FetchedPage:
    """A downloaded and parsed web page.

    Attributes
    ----------
    url:
        The URL that was requested.
    final_url:
        The URL after redirects.
    status_code:
        HTTP status of the final response.
    document:
        The parsed HTML tree.
    """

    url: str
    final_url: str
    status_code: int
    document: BeautifulSoup


# Concrete implementation: HttpxPageFetcher (profmatch/providers/fetch/)
class IPageFetcher(ABC):
    """Contract for services that download and parse instructor pages."""

    @abstractmethod
    async def fetch(self, url: str) -> FetchedPage:
        """Download *url* and parse it into a document tree.

        Malformed URLs must be rejected before any network call is made.

        Raises
        ------
        profmatch.utils.errors.FetchError
            ``INVALID_URL`` for a malformed URL, ``STATUS`` for a non-2xx
            response, ``NETWORK`` for connection failures and timeouts.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"httpx_fetcher"``."""
