"""Models for result cards: discovered selectors and extracted content."""

from dataclasses import dataclass, field
from typing import Tuple

from pydantic import BaseModel, Field


@dataclass(frozen=True)
class CardContent:
    """Text and link extracted from a single result card."""

    title: str
    url: str
    other_text: Tuple[str, ...] = field(default_factory=tuple)


class ResultCardSelector(BaseModel):
    """Discovered card selector for a site's search results page."""

    title: str = Field(..., description="Site title")
    url: str = Field(..., description="Search URL template with a %s placeholder")
    selector: str = Field(..., description="CSS selector matching each result card")


class SearchResult(BaseModel):
    """One result returned by running a query against a discovered site."""

    title: str = Field(..., description="Best matching text inside the card link")
    result_url: str = Field(..., description="Absolute URL of the result")
    score: int = Field(..., description="Fuzzy match score of the title against the query")
    website_title: str = Field(default="", description="Title of the searched site")
    website_url: str = Field(..., description="URL of the searched site")
    category: str = Field(default="", description="Category of the searched site")
    image_url: str | None = Field(
        default=None, description="Absolute URL of the card's first image"
    )
