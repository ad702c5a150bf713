"""Application configuration using Pydantic BaseSettings."""

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from spyglass.constants import (
    DEFAULT_COMMON_QUERY,
    DEFAULT_FALLBACK_QUERIES,
    DEFAULT_FETCH_TIMEOUT_SECONDS,
    DEFAULT_NONSENSE_QUERY,
    DEFAULT_SKIP_KEYWORDS,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        # Load .env first, then .env.local (for local/test overrides)
        # Later files override earlier ones, so .env.local takes precedence
        env_file=[".env", ".env.local"],
        env_file_encoding="utf-8",
        env_prefix="SPYGLASS_",
        case_sensitive=False,
    )

    # Environment
    env: Literal["local", "ci", "prod"] = Field(
        default="local", description="Current environment"
    )
    log_level: str = Field(default="INFO", description="Python logging level")

    # Logfire Configuration
    logfire_token: str | None = Field(
        default=None, description="Pydantic Logfire token (optional)"
    )

    # ==========================================================================
    # Fetch Configuration
    # ==========================================================================

    fetch_timeout_seconds: float = Field(
        default=DEFAULT_FETCH_TIMEOUT_SECONDS,
        description="HTTP timeout for a single page fetch (seconds)",
    )

    # ==========================================================================
    # Discovery Configuration
    # ==========================================================================
    # Complex values are read from the environment as JSON, e.g.
    # SPYGLASS_FALLBACK_QUERIES='{"Books": "murder"}'

    common_query: str = Field(
        default=DEFAULT_COMMON_QUERY,
        description="Generic query expected to return results",
    )
    nonsense_query: str = Field(
        default=DEFAULT_NONSENSE_QUERY,
        description="Query expected to return no results",
    )
    fallback_queries: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_FALLBACK_QUERIES),
        description="Per-category query tried when the common query fails",
    )
    skip_keywords: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SKIP_KEYWORDS),
        description="Substrings that exclude a site link from discovery",
    )


class DiscoveryConfig(BaseModel):
    """Probe queries and filters passed explicitly into discovery calls.

    Kept separate from Settings so tests and callers can build one
    without touching the environment.
    """

    common_query: str = DEFAULT_COMMON_QUERY
    nonsense_query: str = DEFAULT_NONSENSE_QUERY
    fallback_queries: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_FALLBACK_QUERIES)
    )
    skip_keywords: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SKIP_KEYWORDS)
    )

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "DiscoveryConfig":
        """Build a config from application settings."""
        settings = settings or get_settings()
        return cls(
            common_query=settings.common_query,
            nonsense_query=settings.nonsense_query,
            fallback_queries=dict(settings.fallback_queries),
            skip_keywords=list(settings.skip_keywords),
        )

    def fallback_query_for(self, category: str) -> str | None:
        """Return the fallback query for a category, if one is configured."""
        return self.fallback_queries.get(category) or None

    def matching_skip_keyword(self, *texts: str) -> str | None:
        """Return the first skip keyword found in any of the texts."""
        for keyword in self.skip_keywords:
            if any(keyword in text for text in texts if text):
                return keyword
        return None


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
