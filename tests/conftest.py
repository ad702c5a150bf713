"""Shared pytest fixtures and configuration.

Fixture Categories:
1. Fetching: static_fetcher (in-memory PageFetcher), respx_mock
2. Configuration: discovery_config
3. Pages: website_link, search_link, results_page, no_results_page
4. Logging: logfire_capture
"""

import os
from unittest.mock import patch

os.environ.setdefault("LOGFIRE_IGNORE_NO_CONFIG", "1")

import logfire
import pytest
import respx

from spyglass.config import DiscoveryConfig
from spyglass.models.link_models import SearchLink, WebsiteLink
from spyglass.services.errors import FetchError


class StaticPageFetcher:
    """PageFetcher serving fixed HTML per URL; unknown URLs fail like a 404."""

    def __init__(self, pages: dict[str, str] | None = None):
        self.pages = dict(pages or {})
        self.requested: list[str] = []

    async def fetch(self, url: str) -> str:
        self.requested.append(url)
        if url not in self.pages:
            raise FetchError(url, "status 404", 404)
        return self.pages[url]


def page(body: str, head: str = "<title>Test</title>") -> str:
    """Wrap body markup in a full HTML document."""
    return f"<html><head>{head}</head><body>{body}</body></html>"


CHROME = """
<header><nav class="primary"><a href="/">Home</a><a href="/about">About</a></nav></header>
"""

FOOTER = """
<footer><p>© Example</p></footer>
"""


def results_markup(card_count: int = 10) -> str:
    """Results page body: page chrome plus a results list of div.card."""
    cards = "".join(
        f'<div class="card"><a href="/item/{i}">Item {i}</a><p>Detail {i}</p></div>'
        for i in range(card_count)
    )
    return CHROME + f'<main><div class="results">{cards}</div></main>' + FOOTER


def no_results_markup() -> str:
    """No-results page body: the same chrome and an empty message."""
    return CHROME + '<main><p class="empty">No results found</p></main>' + FOOTER


@pytest.fixture
def static_fetcher():
    """Empty StaticPageFetcher; tests add pages via .pages[url] = html."""
    return StaticPageFetcher()


@pytest.fixture
def discovery_config():
    """Discovery config with the default probe queries and no skip keywords."""
    return DiscoveryConfig(skip_keywords=[])


@pytest.fixture
def website_link():
    return WebsiteLink(title="Example Books", url="https://books.example/", category="Books")


@pytest.fixture
def search_link(website_link):
    return SearchLink(
        website_link=website_link,
        search_url="https://books.example/search?q=%s",
    )


@pytest.fixture
def results_page():
    return page(results_markup())


@pytest.fixture
def no_results_page():
    return page(no_results_markup())


@pytest.fixture
def respx_mock():
    """Respx mock fixture for HTTP mocking."""
    with respx.mock:
        yield respx


@pytest.fixture
def logfire_capture():
    """
    Capture Logfire logs for testing.

    This fixture patches Logfire to capture log calls for assertion.
    """
    captured_logs = []

    original_info = logfire.info
    original_warning = logfire.warning

    def capture_info(*args, **kwargs):
        captured_logs.append(("info", args, kwargs))
        return original_info(*args, **kwargs)

    def capture_warning(*args, **kwargs):
        captured_logs.append(("warning", args, kwargs))
        return original_warning(*args, **kwargs)

    with (
        patch("logfire.info", side_effect=capture_info),
        patch("logfire.warning", side_effect=capture_warning),
    ):
        yield captured_logs
