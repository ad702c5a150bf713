"""Result card selector discovery.

Finds the CSS selector of the repeating "cards" on a site's search
results page with a two-tier strategy:

Tier 1, differential scrape: fetch a page for a nonsense query (no
results) and one for a common query (results). Every signature on the
empty page is page chrome; the shallowest remaining element whose
children repeat a signature is the results container.

Tier 2, frequency analysis: on the results page alone, score each child
signature that repeats under a parent by ``count * 5 + parent depth`` and
take the single best. Used when the differential signal is missing, e.g.
client-rendered pages whose empty and full states share most markup.
"""

from collections import Counter
from typing import Callable, TypeVar

import logfire
from bs4 import BeautifulSoup

from spyglass.config import DiscoveryConfig
from spyglass.constants import FREQUENCY_REPEAT_WEIGHT, MIN_CONTAINER_CHILDREN
from spyglass.models.card_models import ResultCardSelector
from spyglass.models.link_models import SearchLink
from spyglass.services.dom_signature import (
    body_elements,
    child_elements,
    child_signature_counts,
    element_depth,
    element_signature,
    repeating_child_signature,
    signature_set,
)
from spyglass.services.errors import (
    AmbiguousError,
    CardSelectorNotFoundError,
    DiscoveryError,
    FetchError,
    NoCandidateError,
)
from spyglass.services.page_fetcher import HttpxPageFetcher, PageFetcher, fetch_document

T = TypeVar("T")


def differential_analysis(results_soup: BeautifulSoup, blacklist: set[str]) -> str:
    """Find the results container by subtracting the no-results page.

    Args:
        results_soup: Parsed page for a query that returns results
        blacklist: Signatures seen on the no-results page

    Returns:
        Selector "containerSignature > cardSignature"

    Raises:
        NoCandidateError: If no unique container with repeating children exists
    """
    best_container = None
    best_depth = 0
    for element in body_elements(results_soup):
        if len(child_elements(element)) < MIN_CONTAINER_CHILDREN:
            continue
        if element_signature(element) in blacklist:
            continue
        if not repeating_child_signature(element):
            continue
        depth = element_depth(element)
        # Strict comparison keeps the first candidate in document order on equal depth
        if best_container is None or depth < best_depth:
            best_container = element
            best_depth = depth

    if best_container is None:
        raise NoCandidateError(
            "Diff failed: could not find any unique container with repeating children"
        )

    container_signature = element_signature(best_container)
    card_signature = repeating_child_signature(best_container)
    if not card_signature:
        raise NoCandidateError(
            f"Found container ({container_signature}), "
            "but failed to find repeating cards inside"
        )
    return f"{container_signature} > {card_signature}"


def best_repeating_signature(soup: BeautifulSoup) -> str:
    """Find the most significant repeating element signature on a page.

    Every parent below <body> contributes ``count * 5 + depth`` for each
    child signature it holds more than once. Depth favours content nested
    inside the page over shallow layout repeats such as menu items.

    Raises:
        NoCandidateError: If no signature repeats under any parent
        AmbiguousError: If several signatures share the top score
    """
    scores: Counter = Counter()
    for parent in body_elements(soup):
        counts = child_signature_counts(parent)
        repeated = {sig: count for sig, count in counts.items() if count > 1}
        if not repeated:
            continue
        depth = element_depth(parent)
        for signature, count in repeated.items():
            scores[signature] += count * FREQUENCY_REPEAT_WEIGHT + depth

    if not scores:
        raise NoCandidateError(
            "Frequency analysis failed: no elements with repeating signatures found"
        )

    top_score = max(scores.values())
    leaders = [signature for signature, score in scores.items() if score == top_score]
    if len(leaders) > 1:
        raise AmbiguousError(
            f"Frequency analysis failed: found {len(leaders)} candidates "
            f"with same top score ({top_score}): {', '.join(sorted(leaders))}",
            top_score=top_score,
            next_score=top_score,
        )
    return leaders[0]


async def _analyse_results_page(
    search_link: SearchLink,
    fetcher: PageFetcher,
    config: DiscoveryConfig,
    analyse: Callable[[BeautifulSoup], T],
    tier: str,
) -> T:
    """Run an analysis on the results page, retrying with the category query.

    The common query is tried first; on a fetch or analysis failure the
    category's fallback query is tried once if one is configured. Without
    a fallback query the common query's error is raised unchanged, so a
    fetch failure stays a FetchError.
    """
    url = search_link.url_for(config.common_query)
    try:
        return analyse(await fetch_document(fetcher, url))
    except DiscoveryError as e:
        first_error = e
        logfire.info(
            "Common query failed, looking for fallback query",
            tier=tier,
            url=url,
            error=str(e),
        )

    fallback_query = config.fallback_query_for(search_link.category)
    if fallback_query is None:
        logfire.info(
            "No fallback query configured",
            tier=tier,
            category=search_link.category,
        )
        raise first_error

    url = search_link.url_for(fallback_query)
    try:
        soup = await fetch_document(fetcher, url)
    except FetchError as e:
        if isinstance(first_error, FetchError):
            message = f"results page failed on both common and fallback queries: {e}"
        else:
            message = (
                "fallback results page failed after the common query page "
                f"could not be analysed ({first_error}): {e}"
            )
        raise FetchError(url, message, e.status_code) from e
    return analyse(soup)


async def run_differential_scrape(
    search_link: SearchLink,
    fetcher: PageFetcher,
    config: DiscoveryConfig,
) -> str:
    """Tier 1: compare a no-results page with a results page.

    Raises:
        DiscoveryError: If either page cannot be fetched or no container is found
    """
    no_results_url = search_link.url_for(config.nonsense_query)
    no_results_soup = await fetch_document(fetcher, no_results_url)
    blacklist = signature_set(no_results_soup)
    logfire.debug(
        "Built no-results blacklist", url=no_results_url, signature_count=len(blacklist)
    )

    return await _analyse_results_page(
        search_link,
        fetcher,
        config,
        lambda soup: differential_analysis(soup, blacklist),
        "differential",
    )


async def run_frequency_analysis(
    search_link: SearchLink,
    fetcher: PageFetcher,
    config: DiscoveryConfig,
) -> str:
    """Tier 2: frequency analysis on a single results page.

    Raises:
        DiscoveryError: If the page cannot be fetched, nothing repeats, or
            the top score is tied
    """
    return await _analyse_results_page(
        search_link, fetcher, config, best_repeating_signature, "frequency"
    )


async def find_result_card_selector(
    search_link: SearchLink,
    fetcher: PageFetcher | None = None,
    config: DiscoveryConfig | None = None,
) -> ResultCardSelector:
    """Discover the result card selector for a site's search page.

    Tries the differential scrape first and falls back to frequency
    analysis.

    Args:
        search_link: Site search template with a "%s" placeholder
        fetcher: Page fetcher (defaults to HttpxPageFetcher)
        config: Probe queries (defaults to DiscoveryConfig.from_settings())

    Raises:
        CardSelectorNotFoundError: If both tiers fail; carries both causes
    """
    fetcher = fetcher or HttpxPageFetcher()
    config = config or DiscoveryConfig.from_settings()

    with logfire.span("find_result_card_selector", search_url=search_link.search_url):
        try:
            selector = await run_differential_scrape(search_link, fetcher, config)
            tier = "differential"
        except DiscoveryError as differential_error:
            logfire.info(
                "Differential scrape failed, falling back to frequency analysis",
                search_url=search_link.search_url,
                error=str(differential_error),
            )
            try:
                selector = await run_frequency_analysis(search_link, fetcher, config)
                tier = "frequency"
            except DiscoveryError as frequency_error:
                logfire.warning(
                    "Card selector discovery failed",
                    search_url=search_link.search_url,
                    differential_error=str(differential_error),
                    frequency_error=str(frequency_error),
                )
                raise CardSelectorNotFoundError(
                    search_link.website_link.url, differential_error, frequency_error
                ) from frequency_error

        logfire.info(
            "Card selector found",
            search_url=search_link.search_url,
            selector=selector,
            tier=tier,
        )
        return ResultCardSelector(
            title=search_link.title, url=search_link.search_url, selector=selector
        )
