"""Aggregator redirect resolution: legacy decoding and signed exchange."""

from .interfaces import ResolutionStrategy
from .legacy import LegacyDecodeStrategy, decode_legacy
from .orchestrator import (
    URLResolver,
    extract_article_id,
    get_resolver,
    is_aggregator_url,
    resolve_url,
)
from .signed import SignedExchangeStrategy, SignedRequestResolver

__all__ = [
    "URLResolver",
    "ResolutionStrategy",
    "LegacyDecodeStrategy",
    "SignedExchangeStrategy",
    "SignedRequestResolver",
    "decode_legacy",
    "extract_article_id",
    "is_aggregator_url",
    "get_resolver",
    "resolve_url",
    "cleanup_resources",
]


async def cleanup_resources():
    """Clean up resolver resources including the shared HTTP session."""
    from .http_session import close_http_session

    await close_http_session()
