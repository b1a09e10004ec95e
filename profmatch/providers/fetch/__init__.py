"""Page fetcher providers.

HttpxPageFetcher downloads instructor pages with httpx and parses them with
BeautifulSoup.  URLs are validated before any network call.
"""

from profmatch.providers.fetch.httpx_page_fetcher import HttpxPageFetcher, validate_url

__all__ = ["HttpxPageFetcher", "validate_url"]
