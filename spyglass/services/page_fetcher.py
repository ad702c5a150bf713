"""Page fetching and parsing for the discovery services.

- PageFetcher: Protocol for fetching page content
- HttpxPageFetcher: httpx implementation with browser-like headers
- parse_html: turn fetched markup into a BeautifulSoup document

Discovery services take a PageFetcher so tests and callers can supply
already-retrieved HTML without network access.
"""

from typing import Protocol

import httpx
import logfire
from bs4 import BeautifulSoup

from spyglass.config import get_settings
from spyglass.constants import DEFAULT_REQUEST_HEADERS
from spyglass.services.errors import FetchError


class PageFetcher(Protocol):
    """Protocol for fetching page content."""

    async def fetch(self, url: str) -> str:
        """Fetch HTML content from URL.

        Args:
            url: The URL to fetch

        Returns:
            HTML content as string

        Raises:
            FetchError: If the fetch fails
        """
        ...


class HttpxPageFetcher:
    """Fetch pages using httpx with browser-like headers."""

    def __init__(
        self,
        timeout: float | None = None,
        headers: dict[str, str] | None = None,
    ):
        """Initialize the page fetcher.

        Args:
            timeout: HTTP timeout in seconds (defaults to settings.fetch_timeout_seconds)
            headers: Optional custom headers (defaults to browser-like headers)
        """
        if timeout is None:
            timeout = get_settings().fetch_timeout_seconds
        self._timeout = timeout
        self._headers = headers or DEFAULT_REQUEST_HEADERS.copy()

    async def fetch(self, url: str) -> str:
        """Fetch a page.

        Args:
            url: The URL to fetch

        Returns:
            HTML content as string

        Raises:
            FetchError: On timeout, transport error, or non-2xx status
        """
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=True,
                headers=self._headers,
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logfire.warning(
                "Page fetch returned error status",
                url=url,
                status_code=e.response.status_code,
            )
            raise FetchError(
                url, f"status {e.response.status_code}", e.response.status_code
            ) from e
        except httpx.HTTPError as e:
            logfire.warning("Page fetch failed", url=url, error=str(e))
            raise FetchError(url, str(e) or type(e).__name__) from e

        logfire.info(
            "Page fetched (httpx)",
            url=url,
            status_code=response.status_code,
            content_length=len(response.text),
        )
        return response.text


def parse_html(html: str) -> BeautifulSoup:
    """Parse markup into a document for analysis."""
    return BeautifulSoup(html, "html.parser")


async def fetch_document(fetcher: PageFetcher, url: str) -> BeautifulSoup:
    """Fetch a URL with the given fetcher and parse the result.

    Raises:
        FetchError: If the fetch fails or returns no content
    """
    html = await fetcher.fetch(url)
    if not html or not html.strip():
        raise FetchError(url, "no content")
    return parse_html(html)
