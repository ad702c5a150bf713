"""Per-site discovery: search template first, then the result card selector."""

import logfire

from spyglass.config import DiscoveryConfig
from spyglass.models.card_models import ResultCardSelector
from spyglass.models.link_models import WebsiteLink
from spyglass.services.card_selector import find_result_card_selector
from spyglass.services.errors import SkippedSiteError
from spyglass.services.page_fetcher import HttpxPageFetcher, PageFetcher
from spyglass.services.search_input_finder import find_search_link


async def discover_site(
    link: WebsiteLink,
    fetcher: PageFetcher | None = None,
    config: DiscoveryConfig | None = None,
) -> ResultCardSelector:
    """Discover everything needed to query a site and parse its results.

    Args:
        link: Site to discover
        fetcher: Page fetcher shared by both steps (defaults to HttpxPageFetcher)
        config: Probe queries and skip keywords (defaults to settings)

    Returns:
        ResultCardSelector holding the search URL template and card selector

    Raises:
        SkippedSiteError: If the link matches a skip keyword
        DiscoveryError: Any failure from search link or card selector discovery
    """
    fetcher = fetcher or HttpxPageFetcher()
    config = config or DiscoveryConfig.from_settings()

    keyword = config.matching_skip_keyword(link.url, link.title)
    if keyword is not None:
        logfire.info("Skipping site", url=link.url, keyword=keyword)
        raise SkippedSiteError(f"Skipped {link.url}: matches keyword '{keyword}'")

    with logfire.span("discover_site", url=link.url, category=link.category):
        search_link = await find_search_link(link, fetcher)
        return await find_result_card_selector(search_link, fetcher, config)
