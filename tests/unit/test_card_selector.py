"""Tests for result card selector discovery (differential and frequency tiers)."""

import pytest
from bs4 import BeautifulSoup

from conftest import CHROME, FOOTER, page, results_markup
from spyglass.models.link_models import SearchLink, WebsiteLink
from spyglass.services.card_selector import (
    best_repeating_signature,
    differential_analysis,
    find_result_card_selector,
    run_differential_scrape,
    run_frequency_analysis,
)
from spyglass.services.dom_signature import signature_set
from spyglass.services.errors import (
    AmbiguousError,
    CardSelectorNotFoundError,
    FetchError,
    NoCandidateError,
)

NONSENSE_URL = "https://books.example/search?q=asdfghjklqwerty12345"
COMMON_URL = "https://books.example/search?q=the"
FALLBACK_URL = "https://books.example/search?q=murder"


def soup_of(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


class TestDifferentialAnalysis:
    """Tests for differential_analysis()."""

    def test_finds_results_container(self, results_page, no_results_page):
        blacklist = signature_set(soup_of(no_results_page))
        selector = differential_analysis(soup_of(results_page), blacklist)
        assert selector == "div.results > div.card"

    def test_selector_matches_every_card(self, results_page, no_results_page):
        blacklist = signature_set(soup_of(no_results_page))
        soup = soup_of(results_page)
        selector = differential_analysis(soup, blacklist)
        assert len(soup.select(selector)) == 10

    def test_shallowest_container_wins(self, no_results_page):
        cards = "".join(
            f'<div class="card"><ul class="tags"><li>a{i}</li><li>b{i}</li></ul></div>'
            for i in range(4)
        )
        results = page(CHROME + f'<main><div class="results">{cards}</div></main>' + FOOTER)
        blacklist = signature_set(soup_of(no_results_page))
        assert differential_analysis(soup_of(results), blacklist) == "div.results > div.card"

    def test_blacklisted_chrome_is_ignored(self, no_results_page):
        """Navigation links repeat on both pages and are not results."""
        blacklist = signature_set(soup_of(no_results_page))
        with pytest.raises(NoCandidateError, match="Diff failed"):
            differential_analysis(soup_of(no_results_page), blacklist)

    def test_empty_blacklist_still_requires_repeats(self):
        soup = soup_of(page('<div class="a"><p class="x"></p><span></span></div>'))
        with pytest.raises(NoCandidateError):
            differential_analysis(soup, set())


class TestBestRepeatingSignature:
    """Tests for best_repeating_signature()."""

    def test_cards_outscore_menu_links(self, results_page):
        # div.card: 10 * 5 + depth 3 beats nav links: 2 * 5 + depth 3
        assert best_repeating_signature(soup_of(results_page)) == "div.card"

    def test_scores_accumulate_across_parents(self):
        lists = "".join(
            f'<ul class="list{n}"><li class="item"></li><li class="item"></li></ul>'
            for n in range(3)
        )
        soup = soup_of(
            page(lists + '<div class="x"><p></p><p></p><p></p></div>')
        )
        # li.item: 3 * (2 * 5 + 2) = 36; p: 3 * 5 + 2 = 17
        assert best_repeating_signature(soup) == "li.item"

    def test_tied_top_score_is_ambiguous(self):
        soup = soup_of(
            page(
                '<div class="a">' + '<div class="cardA"></div>' * 3 + "</div>"
                '<div class="b">' + '<div class="cardB"></div>' * 3 + "</div>"
            )
        )
        with pytest.raises(AmbiguousError, match="found 2 candidates with same top score") as exc_info:
            best_repeating_signature(soup)
        assert exc_info.value.top_score == 17

    def test_two_cards_tie_with_menu_links(self):
        # div.card and nav a both score 2 * 5 + depth 3
        with pytest.raises(AmbiguousError, match="a, div.card") as exc_info:
            best_repeating_signature(soup_of(page(results_markup(2))))
        assert exc_info.value.top_score == 13

    def test_nothing_repeats(self):
        soup = soup_of(page('<div class="a"><p></p><span></span></div>'))
        with pytest.raises(NoCandidateError, match="no elements with repeating signatures"):
            best_repeating_signature(soup)


class TestRunDifferentialScrape:
    """Tests for tier 1 with the common and fallback queries."""

    @pytest.mark.asyncio
    async def test_uses_nonsense_then_common_query(
        self, search_link, static_fetcher, discovery_config, results_page, no_results_page
    ):
        static_fetcher.pages[NONSENSE_URL] = no_results_page
        static_fetcher.pages[COMMON_URL] = results_page

        selector = await run_differential_scrape(search_link, static_fetcher, discovery_config)

        assert selector == "div.results > div.card"
        assert static_fetcher.requested == [NONSENSE_URL, COMMON_URL]

    @pytest.mark.asyncio
    async def test_fallback_query_after_fetch_failure(
        self, search_link, static_fetcher, discovery_config, results_page, no_results_page
    ):
        static_fetcher.pages[NONSENSE_URL] = no_results_page
        static_fetcher.pages[FALLBACK_URL] = results_page

        selector = await run_differential_scrape(search_link, static_fetcher, discovery_config)

        assert selector == "div.results > div.card"
        assert static_fetcher.requested == [NONSENSE_URL, COMMON_URL, FALLBACK_URL]

    @pytest.mark.asyncio
    async def test_fallback_query_after_analysis_failure(
        self, search_link, static_fetcher, discovery_config, results_page, no_results_page
    ):
        static_fetcher.pages[NONSENSE_URL] = no_results_page
        static_fetcher.pages[COMMON_URL] = no_results_page
        static_fetcher.pages[FALLBACK_URL] = results_page

        selector = await run_differential_scrape(search_link, static_fetcher, discovery_config)

        assert selector == "div.results > div.card"

    @pytest.fixture
    def music_link(self):
        return SearchLink(
            website_link=WebsiteLink(title="Music", url="https://music.example/", category="Music"),
            search_url="https://music.example/find?term=%s",
        )

    @pytest.mark.asyncio
    async def test_no_fallback_keeps_fetch_failure(
        self, music_link, static_fetcher, discovery_config, no_results_page
    ):
        static_fetcher.pages["https://music.example/find?term=asdfghjklqwerty12345"] = (
            no_results_page
        )

        with pytest.raises(FetchError) as exc_info:
            await run_differential_scrape(music_link, static_fetcher, discovery_config)

        assert exc_info.value.url == "https://music.example/find?term=the"
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_no_fallback_keeps_analysis_failure(
        self, music_link, static_fetcher, discovery_config, no_results_page
    ):
        static_fetcher.pages["https://music.example/find?term=asdfghjklqwerty12345"] = (
            no_results_page
        )
        static_fetcher.pages["https://music.example/find?term=the"] = no_results_page

        with pytest.raises(NoCandidateError, match="Diff failed"):
            await run_differential_scrape(music_link, static_fetcher, discovery_config)

    @pytest.mark.asyncio
    async def test_missing_no_results_page(self, search_link, static_fetcher, discovery_config):
        with pytest.raises(FetchError) as exc_info:
            await run_differential_scrape(search_link, static_fetcher, discovery_config)
        assert exc_info.value.url == NONSENSE_URL

    @pytest.mark.asyncio
    async def test_fallback_fetch_failure(
        self, search_link, static_fetcher, discovery_config, no_results_page
    ):
        static_fetcher.pages[NONSENSE_URL] = no_results_page
        with pytest.raises(FetchError, match="both common and fallback queries") as exc_info:
            await run_differential_scrape(search_link, static_fetcher, discovery_config)
        assert exc_info.value.url == FALLBACK_URL
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_fallback_fetch_failure_after_analysis_failure(
        self, search_link, static_fetcher, discovery_config, no_results_page
    ):
        static_fetcher.pages[NONSENSE_URL] = no_results_page
        static_fetcher.pages[COMMON_URL] = no_results_page

        with pytest.raises(FetchError) as exc_info:
            await run_differential_scrape(search_link, static_fetcher, discovery_config)

        message = str(exc_info.value)
        assert "common query page could not be analysed (Diff failed" in message
        assert "both common and fallback queries" not in message
        assert exc_info.value.url == FALLBACK_URL


class TestRunFrequencyAnalysis:
    """Tests for tier 2."""

    @pytest.mark.asyncio
    async def test_needs_only_results_page(
        self, search_link, static_fetcher, discovery_config, results_page
    ):
        static_fetcher.pages[COMMON_URL] = results_page

        assert (
            await run_frequency_analysis(search_link, static_fetcher, discovery_config)
            == "div.card"
        )
        assert static_fetcher.requested == [COMMON_URL]

    @pytest.mark.asyncio
    async def test_fetch_failure_without_fallback_query(self, static_fetcher, discovery_config):
        """A missing results page stays a fetch failure when the category has no fallback."""
        link = SearchLink(
            website_link=WebsiteLink(title="Misc", url="https://m.example/"),
            search_url="https://m.example/?s=%s",
        )

        with pytest.raises(FetchError) as exc_info:
            await run_frequency_analysis(link, static_fetcher, discovery_config)

        assert exc_info.value.status_code == 404


class TestFindResultCardSelector:
    """Tests for find_result_card_selector()."""

    @pytest.mark.asyncio
    async def test_differential_result(
        self,
        search_link,
        static_fetcher,
        discovery_config,
        results_page,
        no_results_page,
        logfire_capture,
    ):
        static_fetcher.pages[NONSENSE_URL] = no_results_page
        static_fetcher.pages[COMMON_URL] = results_page

        result = await find_result_card_selector(search_link, static_fetcher, discovery_config)

        assert result.title == "Example Books"
        assert result.url == "https://books.example/search?q=%s"
        assert result.selector == "div.results > div.card"
        found = [kw for level, args, kw in logfire_capture if args[0] == "Card selector found"]
        assert found[0]["tier"] == "differential"

    @pytest.mark.asyncio
    async def test_falls_back_to_frequency_analysis(
        self, search_link, static_fetcher, discovery_config, results_page, logfire_capture
    ):
        static_fetcher.pages[COMMON_URL] = results_page

        result = await find_result_card_selector(search_link, static_fetcher, discovery_config)

        assert result.selector == "div.card"
        found = [kw for level, args, kw in logfire_capture if args[0] == "Card selector found"]
        assert found[0]["tier"] == "frequency"

    @pytest.mark.asyncio
    async def test_both_tiers_fail(self, search_link, static_fetcher, discovery_config):
        static_fetcher.pages[NONSENSE_URL] = page("<main></main>")
        static_fetcher.pages[COMMON_URL] = page("<main><p>Nothing here</p></main>")

        with pytest.raises(CardSelectorNotFoundError) as exc_info:
            await find_result_card_selector(search_link, static_fetcher, discovery_config)

        error = exc_info.value
        assert error.url == "https://books.example/"
        assert isinstance(error.differential_error, FetchError)
        assert isinstance(error.frequency_error, FetchError)
        assert "differential:" in str(error)
        assert "frequency:" in str(error)

    @pytest.mark.asyncio
    async def test_both_tiers_fail_without_fallback_query(self, static_fetcher, discovery_config):
        link = SearchLink(
            website_link=WebsiteLink(title="Misc", url="https://misc.example/"),
            search_url="https://misc.example/?s=%s",
        )

        with pytest.raises(CardSelectorNotFoundError) as exc_info:
            await find_result_card_selector(link, static_fetcher, discovery_config)

        assert isinstance(exc_info.value.differential_error, FetchError)
        assert isinstance(exc_info.value.frequency_error, FetchError)
        assert exc_info.value.frequency_error.url == "https://misc.example/?s=the"
        assert exc_info.value.frequency_error.status_code == 404

    @pytest.mark.asyncio
    async def test_repeat_runs_agree(
        self, search_link, static_fetcher, discovery_config, results_page, no_results_page
    ):
        static_fetcher.pages[NONSENSE_URL] = no_results_page
        static_fetcher.pages[COMMON_URL] = results_page

        first = await find_result_card_selector(search_link, static_fetcher, discovery_config)
        second = await find_result_card_selector(search_link, static_fetcher, discovery_config)

        assert first == second
