"""Settings and configuration management."""

import logging
from typing import List, Optional, Tuple

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables or a .env file."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Content Sources
    rss_feeds: Optional[str] = Field(
        None, description="Comma-separated feed URLs, optionally 'category=url'"
    )

    # AI Processing
    openrouter_api_key: Optional[str] = Field(None, description="OpenRouter")
    openrouter_model: Optional[str] = Field(
        None, description="Preferred OpenRouter model for fallback extraction"
    )

    # Application Settings
    debug: bool = Field(False, description="Debug mode")
    log_level: str = Field("INFO", description="Log level")

    # API Timeout Settings (in seconds)
    openrouter_timeout: float = Field(
        30.0, ge=5.0, le=120.0, description="OpenRouter API request timeout in seconds"
    )
    rss_feed_timeout: float = Field(
        30.0, ge=5.0, le=120.0, description="RSS feed fetch timeout in seconds"
    )
    signing_params_timeout: float = Field(
        10.0,
        ge=1.0,
        le=60.0,
        description="Aggregator article page (signature) fetch timeout in seconds",
    )
    batch_execute_timeout: float = Field(
        15.0,
        ge=1.0,
        le=60.0,
        description="Aggregator batchexecute exchange timeout in seconds",
    )
    article_fetch_timeout: float = Field(
        15.0, ge=1.0, le=60.0, description="Publisher article fetch timeout in seconds"
    )

    # OpenRouter Rate Limiting Settings
    openrouter_min_request_interval: float = Field(
        3.2,
        ge=0.0,
        le=10.0,
        description="Minimum seconds between OpenRouter requests (free tier: 20 req/min)",
    )
    openrouter_max_backoff_multiplier: float = Field(
        8.0,
        ge=1.0,
        le=32.0,
        description="Maximum backoff multiplier for consecutive failures",
    )

    # Scraping behaviour
    scrape_request_delay: float = Field(
        0.5,
        ge=0.0,
        le=30.0,
        description="Pause in seconds after each article of a batch",
    )
    ai_fallback_min_html_length: int = Field(
        500,
        ge=0,
        description="Smallest HTML document worth sending to the AI fallback",
    )
    ai_fallback_max_html_chars: int = Field(
        15000,
        ge=1000,
        le=100000,
        description="Maximum HTML characters included in the AI fallback prompt",
    )

    # Aggregator protocol and request headers
    aggregator_locale: str = Field(
        "KR:ko", description="Locale code embedded in the batchexecute payload"
    )
    accept_language: str = Field(
        "ko-KR,ko;q=0.9,en-US;q=0.8,en;q=0.7",
        description="Accept-Language header for article fetches",
    )
    browser_user_agent: str = Field(
        DEFAULT_BROWSER_USER_AGENT,
        min_length=5,
        max_length=300,
        description="User-Agent for aggregator and publisher requests",
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        """Accept log levels in any case."""
        level = value.strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @property
    def ai_fallback_enabled(self) -> bool:
        """Whether a generative model is configured for fallback extraction."""
        return bool(self.openrouter_api_key)

    def feed_entries(self) -> List[Tuple[str, str]]:
        """Parse RSS_FEEDS into (category, url) pairs.

        Entries look like ``economy=https://...`` or a bare URL, which is
        filed under the ``general`` category.
        """
        if not self.rss_feeds:
            return []

        entries = []
        for raw in self.rss_feeds.split(","):
            raw = raw.strip()
            if not raw:
                continue
            category, sep, url = raw.partition("=")
            if sep and not category.lower().startswith("http"):
                entries.append((category.strip() or "general", url.strip()))
            else:
                entries.append(("general", raw))
        return entries
