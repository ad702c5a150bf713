"""Search entry point discovery.

Finds a site's primary search input and turns it into something a caller
can use without a browser:

- find_search_input(): a CSS locator for the input plus the form method
- find_search_link(): a GET URL template such as
  "https://site.com/search?lang=en&q=%s"

Both share the form gate and scoring engine in search_form.
"""

from typing import List, Literal
from urllib.parse import parse_qsl, urlencode, urljoin, urlparse

import logfire
from bs4 import BeautifulSoup, Tag

from spyglass.constants import QUERY_PLACEHOLDER
from spyglass.models.link_models import SEARCH_URL_PLACEHOLDER, SearchInput, SearchLink, WebsiteLink
from spyglass.services.dom_signature import closest, selector_path
from spyglass.services.errors import MalformedInputError, NoCandidateError
from spyglass.services.page_fetcher import HttpxPageFetcher, PageFetcher, fetch_document
from spyglass.services.search_form import (
    choose_best_search_input,
    is_likely_search_form,
    single_input_candidates,
)


def form_method(form: Tag | None) -> Literal["get", "post"]:
    """Resolve a form's method, defaulting to "get" when absent or invalid."""
    if form is None:
        return "get"
    method = (form.get("method") or "").strip().lower()
    if method == "post":
        return "post"
    return "get"


def _is_get_form(form: Tag) -> bool:
    method = (form.get("method") or "").strip().lower()
    return method in ("", "get")


def likely_search_forms(soup: BeautifulSoup) -> List[Tag]:
    """Forms on the page that pass the search-form gate, in document order."""
    return [form for form in soup.find_all("form") if is_likely_search_form(form)]


def locate_search_input(soup: BeautifulSoup, source_url: str) -> tuple[str, Literal["get", "post"]]:
    """Find the search input in a parsed page.

    Returns:
        Tuple of (css_selector, method)

    Raises:
        NoCandidateError: If no form passes the gate or no input can be chosen
        AmbiguousError: If the scoring engine cannot separate the candidates
    """
    search_forms = likely_search_forms(soup)
    if not search_forms:
        raise NoCandidateError(f"No likely search forms found on page: {source_url}")

    winner = choose_best_search_input(single_input_candidates(search_forms), source_url)
    method = form_method(closest(winner, "form"))
    return selector_path(winner), method


def build_search_link(soup: BeautifulSoup, page_url: str) -> str:
    """Build a GET search URL template from a parsed page.

    The winning input's name is injected into the form action's existing
    query parameters, the whole set is URL-encoded, and only then is the
    placeholder swapped for "%s" so the percent sign is not escaped.

    Raises:
        NoCandidateError: If no GET search form or input can be chosen
        AmbiguousError: If the scoring engine cannot separate the candidates
        MalformedInputError: If the winning input has no name attribute
    """
    get_forms = [form for form in likely_search_forms(soup) if _is_get_form(form)]
    if not get_forms:
        raise NoCandidateError(
            f"No likely search forms with method=GET were found on: {page_url}"
        )

    winner = choose_best_search_input(single_input_candidates(get_forms), page_url)

    input_name = (winner.get("name") or "").strip()
    if not input_name:
        raise MalformedInputError(
            f"Winning search input has no 'name' attribute on: {page_url}"
        )

    form = closest(winner, "form")
    action = (form.get("action") or "").strip() if form is not None else ""
    action_url = urlparse(urljoin(page_url, action))

    params: dict[str, List[str]] = {}
    for key, value in parse_qsl(action_url.query, keep_blank_values=True):
        params.setdefault(key, []).append(value)
    params[input_name] = [QUERY_PLACEHOLDER]

    encoded_query = urlencode(sorted(params.items()), doseq=True)
    query_template = encoded_query.replace(QUERY_PLACEHOLDER, SEARCH_URL_PLACEHOLDER, 1)

    base_url = f"{action_url.scheme}://{action_url.netloc}{action_url.path}"
    return f"{base_url}?{query_template}"


async def find_search_input(
    link: WebsiteLink, fetcher: PageFetcher | None = None
) -> SearchInput:
    """Discover the primary search input on a site.

    Args:
        link: Site to inspect
        fetcher: Page fetcher (defaults to HttpxPageFetcher)

    Returns:
        SearchInput with a CSS locator and the form's method

    Raises:
        DiscoveryError: FetchError, NoCandidateError or AmbiguousError
    """
    fetcher = fetcher or HttpxPageFetcher()
    with logfire.span("find_search_input", url=link.url):
        soup = await fetch_document(fetcher, link.url)
        selector, method = locate_search_input(soup, link.url)
        logfire.info(
            "Search input found", url=link.url, selector=selector, method=method
        )
        return SearchInput(website_link=link, input_selector=selector, method=method)


async def find_search_link(
    link: WebsiteLink, fetcher: PageFetcher | None = None
) -> SearchLink:
    """Discover the GET request template for a site's search.

    Args:
        link: Site to inspect
        fetcher: Page fetcher (defaults to HttpxPageFetcher)

    Returns:
        SearchLink whose search_url contains one "%s" placeholder

    Raises:
        DiscoveryError: FetchError, NoCandidateError, AmbiguousError or
            MalformedInputError
    """
    fetcher = fetcher or HttpxPageFetcher()
    with logfire.span("find_search_link", url=link.url):
        soup = await fetch_document(fetcher, link.url)
        search_url = build_search_link(soup, link.url)
        logfire.info("Search link found", url=link.url, search_url=search_url)
        return SearchLink(website_link=link, search_url=search_url, method="get")
