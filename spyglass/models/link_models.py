"""Models for sites and their discovered search entry points."""

from dataclasses import dataclass
from typing import Literal
from urllib.parse import quote_plus

SEARCH_URL_PLACEHOLDER = "%s"


@dataclass(frozen=True)
class WebsiteLink:
    """A site to run discovery against."""

    title: str
    url: str
    category: str = ""
    starred: bool = False


@dataclass(frozen=True)
class SearchInput:
    """Locator for a site's search input and the method its form submits with."""

    website_link: WebsiteLink
    input_selector: str
    method: Literal["get", "post"]


@dataclass(frozen=True)
class SearchLink:
    """GET request template for a site's search.

    search_url holds exactly one "%s" placeholder standing in for the
    URL-encoded query, e.g. "https://site.com/search?lang=en&q=%s".
    """

    website_link: WebsiteLink
    search_url: str
    method: Literal["get", "post"] = "get"

    @property
    def title(self) -> str:
        return self.website_link.title

    @property
    def category(self) -> str:
        return self.website_link.category

    def url_for(self, query: str) -> str:
        """Return the search URL for a query.

        The query is URL-encoded and substituted textually so other
        percent-escapes already present in the template are left intact.
        """
        return self.search_url.replace(SEARCH_URL_PLACEHOLDER, quote_plus(query), 1)
