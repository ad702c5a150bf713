"""Card content extraction for a confirmed card selector."""

from typing import List

import logfire
import soupsieve
from bs4 import BeautifulSoup, Tag

from spyglass.models.card_models import CardContent
from spyglass.services.dom_signature import child_elements
from spyglass.services.errors import MalformedInputError
from spyglass.services.page_fetcher import HttpxPageFetcher, PageFetcher, fetch_document


def select_cards(soup: BeautifulSoup, card_selector: str) -> List[Tag]:
    """Return every element matching the card selector, in document order.

    Raises:
        MalformedInputError: If the selector is not valid CSS
    """
    try:
        return soup.select(card_selector)
    except soupsieve.SelectorSyntaxError as e:
        raise MalformedInputError(f"Invalid card selector '{card_selector}': {e}") from e


def card_anchor(card: Tag) -> Tag | None:
    """The card's primary link: the card itself if it is an anchor, else its first <a>."""
    if card.name == "a":
        return card
    return card.find("a")


def leaf_texts(card: Tag, anchor: Tag | None = None) -> List[str]:
    """Text of every leaf element in the card, in document order.

    Anchors and leaves nested inside the card's primary anchor are left
    out. A leaf whose text equals the title is kept.
    """
    nested_anchor = anchor if anchor is not None and anchor is not card else None
    texts = []
    for element in card.find_all(True):
        if element.name == "a" or child_elements(element):
            continue
        if nested_anchor is not None and any(
            parent is nested_anchor for parent in element.parents
        ):
            continue
        text = element.get_text(strip=True)
        if text:
            texts.append(text)
    return texts


def extract_card(card: Tag) -> CardContent:
    """Build the CardContent for one card element."""
    anchor = card_anchor(card)
    if anchor is None:
        title, url = "", ""
    else:
        title = anchor.get_text(strip=True)
        url = (anchor.get("href") or "").strip()
    return CardContent(
        title=title, url=url, other_text=tuple(leaf_texts(card, anchor))
    )


def extract_card_content(soup: BeautifulSoup, card_selector: str) -> List[CardContent]:
    """Extract title, URL and other text from every card on a parsed page.

    Raises:
        MalformedInputError: If the selector is not valid CSS
    """
    return [extract_card(card) for card in select_cards(soup, card_selector)]


async def fetch_card_content(
    page_url: str,
    card_selector: str,
    fetcher: PageFetcher | None = None,
) -> List[CardContent]:
    """Fetch a results page and extract its cards.

    Args:
        page_url: Results page URL
        card_selector: CSS selector matching each card
        fetcher: Page fetcher (defaults to HttpxPageFetcher)

    Raises:
        FetchError: If the page cannot be retrieved
        MalformedInputError: If the selector is not valid CSS
    """
    fetcher = fetcher or HttpxPageFetcher()
    soup = await fetch_document(fetcher, page_url)
    cards = extract_card_content(soup, card_selector)
    logfire.info(
        "Card content extracted",
        url=page_url,
        selector=card_selector,
        card_count=len(cards),
    )
    return cards
