"""Run a query against a site whose search template and card selector are known.

Every link inside a matched card is a candidate result. The text of each
element inside the link is ranked against the query with a fuzzy weighted
ratio, and the best text becomes the result title when it scores at least
``SEARCH_RESULT_MIN_SCORE``.
"""

import re
from typing import List, Tuple
from urllib.parse import urljoin, urlparse

import logfire
from bs4 import Tag
from rapidfuzz import fuzz

from spyglass.constants import MISSING_QUERY_WORD_PENALTY, SEARCH_RESULT_MIN_SCORE
from spyglass.models.card_models import SearchResult
from spyglass.models.link_models import SearchLink
from spyglass.services.card_content import select_cards
from spyglass.services.page_fetcher import HttpxPageFetcher, PageFetcher, fetch_document

_NON_NAVIGABLE_PREFIXES = ("#", "mailto:", "tel:", "javascript:")
_PUNCTUATION_PATTERN = re.compile(r"[^a-z0-9\s]")
_WHITESPACE_PATTERN = re.compile(r"\s+")


def to_absolute_url(base_url: str, url: str | None) -> str | None:
    """Resolve a possibly relative URL against the site URL.

    Returns:
        Absolute http(s) URL, or None for empty, fragment-only or
        non-navigable links
    """
    if not url or not url.strip():
        return None
    url = url.strip()
    if url.startswith(_NON_NAVIGABLE_PREFIXES):
        return None
    absolute = urljoin(base_url, url)
    if urlparse(absolute).scheme not in ("http", "https"):
        return None
    return absolute


def normalise_text(text: str) -> str:
    """Lowercase, strip punctuation and collapse whitespace."""
    no_punctuation = _PUNCTUATION_PATTERN.sub("", text.lower())
    return _WHITESPACE_PATTERN.sub(" ", no_punctuation).strip()


def clean_title(text: str) -> str:
    return _WHITESPACE_PATTERN.sub(" ", text).strip()


def ranking_score(normalised_query: str, normalised_title: str) -> int:
    """Weighted fuzzy ratio, lowered by one when a query word is missing."""
    score = round(fuzz.WRatio(normalised_query, normalised_title))
    title_words = set(normalised_title.split())
    if any(word not in title_words for word in normalised_query.split()):
        score -= MISSING_QUERY_WORD_PENALTY
    return score


def best_title(anchor: Tag, normalised_query: str) -> Tuple[str, int] | None:
    """Pick the text inside a link that best matches the query.

    Candidates are the link's descendant elements with text (scripts
    excluded), or the link itself when it has none. The first candidate
    wins on equal scores.
    """
    candidates = [
        element
        for element in anchor.find_all(True)
        if element.name != "script" and element.get_text()
    ] or [anchor]

    best = None
    for element in candidates:
        text = element.get_text()
        title = clean_title(text)
        if not title:
            continue
        score = ranking_score(normalised_query, normalise_text(text))
        if best is None or score > best[1]:
            best = (title, score)
    return best


def _card_links(card: Tag) -> List[Tag]:
    links = card.find_all("a")
    if card.name == "a":
        links.insert(0, card)
    return links


async def search_site(
    query: str,
    search_link: SearchLink,
    card_selector: str,
    fetcher: PageFetcher | None = None,
) -> List[SearchResult]:
    """Search a site and return the card links whose text matches the query.

    Args:
        query: Free-text query (normalised before it is sent)
        search_link: Site search template
        card_selector: Selector for the site's result cards
        fetcher: Page fetcher (defaults to HttpxPageFetcher)

    Raises:
        FetchError: If the results page cannot be retrieved
        MalformedInputError: If the selector is not valid CSS
    """
    fetcher = fetcher or HttpxPageFetcher()
    site = search_link.website_link
    normalised_query = normalise_text(query)
    url = search_link.url_for(normalised_query)

    with logfire.span("search_site", url=url):
        soup = await fetch_document(fetcher, url)
        results: List[SearchResult] = []
        link_count = 0
        for card in select_cards(soup, card_selector):
            image = card.find("img")
            image_url = to_absolute_url(site.url, image.get("src")) if image else None
            for anchor in _card_links(card):
                result_url = to_absolute_url(site.url, anchor.get("href"))
                if result_url is None:
                    continue
                link_count += 1
                best = best_title(anchor, normalised_query)
                if best is None or best[1] < SEARCH_RESULT_MIN_SCORE:
                    continue
                title, score = best
                results.append(
                    SearchResult(
                        title=title,
                        result_url=result_url,
                        score=score,
                        website_title=site.title,
                        website_url=site.url,
                        category=site.category,
                        image_url=image_url,
                    )
                )

        logfire.info(
            "Site searched",
            url=url,
            query=normalised_query,
            link_count=link_count,
            result_count=len(results),
        )
        return results
