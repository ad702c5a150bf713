"""Tests for link and card models."""

import dataclasses

import pytest

from spyglass.models.card_models import ResultCardSelector, SearchResult
from spyglass.models.link_models import SearchLink, WebsiteLink


class TestSearchLink:
    """Tests for SearchLink."""

    @pytest.fixture
    def link(self):
        return SearchLink(
            website_link=WebsiteLink(title="Films", url="https://films.example/", category="Movies"),
            search_url="https://films.example/search?lang=en&q=%s",
        )

    @pytest.mark.parametrize(
        "query,expected",
        [
            ("love", "https://films.example/search?lang=en&q=love"),
            ("war and peace", "https://films.example/search?lang=en&q=war+and+peace"),
            ("a&b=c", "https://films.example/search?lang=en&q=a%26b%3Dc"),
            ("100%", "https://films.example/search?lang=en&q=100%25"),
            ("", "https://films.example/search?lang=en&q="),
        ],
    )
    def test_url_for_encodes_query(self, link, query, expected):
        assert link.url_for(query) == expected

    def test_url_for_keeps_other_escapes(self):
        link = SearchLink(
            website_link=WebsiteLink(title="T", url="https://t.example/"),
            search_url="https://t.example/s?sort=a%20z&q=%s",
        )
        assert link.url_for("x") == "https://t.example/s?sort=a%20z&q=x"

    def test_delegates_title_and_category(self, link):
        assert link.title == "Films"
        assert link.category == "Movies"
        assert link.method == "get"

    def test_is_immutable(self, link):
        with pytest.raises(dataclasses.FrozenInstanceError):
            link.search_url = "https://other.example/?q=%s"


class TestCardModels:
    """Tests for the pydantic card models."""

    def test_result_card_selector_json(self):
        selector = ResultCardSelector(
            title="Films", url="https://films.example/search?q=%s", selector="ul.r > li.hit"
        )
        assert selector.model_dump() == {
            "title": "Films",
            "url": "https://films.example/search?q=%s",
            "selector": "ul.r > li.hit",
        }

    def test_search_result_defaults(self):
        result = SearchResult(
            title="Heat",
            result_url="https://films.example/heat",
            score=100,
            website_url="https://films.example/",
        )
        assert result.image_url is None
        assert result.category == ""
        assert result.website_title == ""
