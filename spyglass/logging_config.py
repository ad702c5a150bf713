"""Centralized logging configuration with Pydantic Logfire integration."""

import logging
from typing import Any

import logfire

from spyglass.config import Settings, get_settings


def setup_logfire(settings: Settings | None = None) -> None:
    """
    Initialize and configure Pydantic Logfire for observability.

    Sets up:
    - Logfire export when a token is configured (console output otherwise)
    - Pydantic instrumentation (model validation logging)
    - Python logging formatted for the current environment
    """
    settings = settings or get_settings()

    logfire_config: dict[str, Any] = {
        "environment": settings.env,
        "send_to_logfire": "if-token-present",
    }

    # Add token if provided (for cloud logging)
    if settings.logfire_token:
        logfire_config["token"] = settings.logfire_token

    logfire.configure(**logfire_config)
    logfire.instrument_pydantic()

    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.env == "local":
        # Local: Console formatting for development
        logging.basicConfig(
            level=log_level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )
    else:
        logging.basicConfig(
            level=log_level,
            format="%(message)s",  # Logfire handles structured formatting
        )


def truncate_for_log(value: str | None, limit: int = 120) -> str:
    """
    Shorten long values (URLs, selectors, element text) for log attributes.

    Args:
        value: Value to shorten
        limit: Maximum length of the returned string

    Returns:
        The value, cut to limit characters with a trailing ellipsis if needed
    """
    if not value:
        return ""
    if len(value) <= limit:
        return value
    return value[: limit - 1] + "…"
