"""Typer-based command line interface for single-site discovery.

Each command runs one discovery call and prints its result as JSON on
stdout. Failures are printed on stderr with exit code 1.
"""

import os

os.environ.setdefault("LOGFIRE_IGNORE_NO_CONFIG", "1")

import asyncio
from typing import Any, Coroutine
from urllib.parse import urlparse

import typer
from pydantic import TypeAdapter

from spyglass.config import DiscoveryConfig, get_settings
from spyglass.logging_config import setup_logfire
from spyglass.models.link_models import SearchLink, WebsiteLink
from spyglass.services.card_content import fetch_card_content
from spyglass.services.card_selector import find_result_card_selector
from spyglass.services.errors import DiscoveryError
from spyglass.services.search_input_finder import find_search_input, find_search_link
from spyglass.services.site_discovery import discover_site
from spyglass.services.site_search import search_site

app = typer.Typer(help="Discover search forms and result card selectors on websites.")


@app.callback()
def _configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level"),
):
    """Configure logging before any command runs."""
    if verbose:
        os.environ["SPYGLASS_LOG_LEVEL"] = "DEBUG"
        get_settings.cache_clear()
    setup_logfire()


def _run(coro: Coroutine[Any, Any, Any]) -> Any:
    """Run a discovery coroutine, turning discovery failures into exit code 1."""
    try:
        return asyncio.run(coro)
    except DiscoveryError as e:
        typer.echo(f"✗ {e}", err=True)
        raise typer.Exit(1)


def _echo_json(value: Any) -> None:
    typer.echo(TypeAdapter(type(value)).dump_json(value, indent=2).decode())


def _site_from_template(search_url: str, title: str, category: str) -> WebsiteLink:
    """Build the site link for a search template (its scheme and host)."""
    parsed = urlparse(search_url)
    return WebsiteLink(
        title=title or parsed.netloc,
        url=f"{parsed.scheme}://{parsed.netloc}/",
        category=category,
    )


def _search_link(search_url: str, title: str, category: str) -> SearchLink:
    if "%s" not in search_url:
        typer.echo("✗ Search URL template must contain a %s placeholder", err=True)
        raise typer.Exit(1)
    return SearchLink(
        website_link=_site_from_template(search_url, title, category),
        search_url=search_url,
    )


@app.command("search-input")
def search_input(
    url: str = typer.Argument(..., help="Site URL"),
    title: str = typer.Option("", help="Site title"),
):
    """Find the search input locator and form method on a site."""
    link = WebsiteLink(title=title, url=url)
    _echo_json(_run(find_search_input(link)))


@app.command("search-link")
def search_link(
    url: str = typer.Argument(..., help="Site URL"),
    title: str = typer.Option("", help="Site title"),
):
    """Find the GET search URL template of a site."""
    link = WebsiteLink(title=title, url=url)
    _echo_json(_run(find_search_link(link)))


@app.command("card-selector")
def card_selector(
    search_url: str = typer.Argument(..., help="Search URL template containing %s"),
    category: str = typer.Option("", help="Site category (selects the fallback query)"),
    title: str = typer.Option("", help="Site title"),
):
    """Find the result card selector for a search URL template."""
    link = _search_link(search_url, title, category)
    config = DiscoveryConfig.from_settings()
    _echo_json(_run(find_result_card_selector(link, config=config)))


@app.command("cards")
def cards(
    url: str = typer.Argument(..., help="Results page URL"),
    selector: str = typer.Argument(..., help="Card CSS selector"),
):
    """Extract title, URL and text from each card on a results page."""
    _echo_json(_run(fetch_card_content(url, selector)))


@app.command("search")
def search(
    query: str = typer.Argument(..., help="Query to run"),
    search_url: str = typer.Argument(..., help="Search URL template containing %s"),
    selector: str = typer.Argument(..., help="Card CSS selector"),
    category: str = typer.Option("", help="Site category"),
    title: str = typer.Option("", help="Site title"),
):
    """Run a query against a site and list its results."""
    link = _search_link(search_url, title, category)
    _echo_json(_run(search_site(query, link, selector)))


@app.command("discover")
def discover(
    url: str = typer.Argument(..., help="Site URL"),
    category: str = typer.Option("", help="Site category (selects the fallback query)"),
    title: str = typer.Option("", help="Site title"),
):
    """Find a site's search template and then its result card selector."""
    link = WebsiteLink(title=title, url=url, category=category)
    config = DiscoveryConfig.from_settings()
    _echo_json(_run(discover_site(link, config=config)))


if __name__ == "__main__":
    app()
