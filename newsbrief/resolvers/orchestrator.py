"""Aggregator link resolution orchestrator."""

import logging
import re
import time
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from newsbrief.models.resolution import ResolutionMethod, ResolutionResult
from newsbrief.models.settings import Settings

from .interfaces import ResolutionStrategy
from .legacy import LegacyDecodeStrategy
from .signed import AGGREGATOR_HOST, SignedExchangeStrategy, SignedRequestResolver

logger = logging.getLogger(__name__)

ARTICLE_ID_PATTERN = re.compile(r"/articles/([^/?#]+)")


def is_aggregator_url(url: str) -> bool:
    """Check whether a URL points at the aggregator redirect domain."""
    try:
        host = (urlparse(url.strip()).hostname or "").lower()
    except (ValueError, AttributeError):
        return False
    return host == AGGREGATOR_HOST


def extract_article_id(url: str) -> Optional[str]:
    """Pull the article identifier out of an aggregator redirect URL."""
    try:
        path = urlparse(url.strip()).path
    except (ValueError, AttributeError):
        return None
    match = ARTICLE_ID_PATTERN.search(path)
    return match.group(1) if match else None


def _is_absolute_http_url(url: Optional[str]) -> bool:
    if not url or not isinstance(url, str):
        return False
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _method_for(strategy: ResolutionStrategy) -> ResolutionMethod:
    try:
        return ResolutionMethod(strategy.strategy_name)
    except ValueError:
        # Custom strategies are reported under the signed tier
        return ResolutionMethod.SIGNED_EXCHANGE


class URLResolver:
    """Resolves aggregator redirect links by running strategies in priority order."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        strategies: Optional[List[ResolutionStrategy]] = None,
    ):
        """Initialize resolver.

        Args:
            settings: Settings used by the default strategies
            strategies: Explicit strategy chain; defaults to legacy decode
                followed by the signed exchange
        """
        self.strategies: List[ResolutionStrategy] = []
        if strategies is None:
            self._register_default_strategies(settings)
        else:
            for strategy in strategies:
                self.register_strategy(strategy)

    def _register_default_strategies(self, settings: Optional[Settings]):
        """Register the built-in resolution tiers."""
        self.register_strategy(LegacyDecodeStrategy())
        self.register_strategy(
            SignedExchangeStrategy(SignedRequestResolver(settings=settings))
        )

    def register_strategy(self, strategy: ResolutionStrategy):
        """
        Register a resolution strategy.

        Args:
            strategy: ResolutionStrategy instance to register
        """
        if not isinstance(strategy, ResolutionStrategy):
            raise ValueError("Strategy must implement ResolutionStrategy interface")

        existing = next(
            (s for s in self.strategies if s.strategy_name == strategy.strategy_name),
            None,
        )
        if existing:
            logger.warning(
                f"Replacing existing strategy: {strategy.strategy_name}"
            )
            self.strategies.remove(existing)

        self.strategies.append(strategy)
        self.strategies.sort(key=lambda s: s.get_priority())

        logger.debug(
            f"Registered strategy: {strategy.strategy_name} "
            f"(priority: {strategy.get_priority()})"
        )

    def unregister_strategy(self, strategy_name: str) -> bool:
        """Remove a strategy by name. Returns True if it was registered."""
        for strategy in self.strategies:
            if strategy.strategy_name == strategy_name:
                self.strategies.remove(strategy)
                logger.debug(f"Unregistered strategy: {strategy_name}")
                return True

        logger.warning(f"Strategy not found for unregistration: {strategy_name}")
        return False

    def list_strategies(self) -> List[Dict[str, Any]]:
        """List registered strategies in the order they run."""
        return [
            {
                "strategy_name": strategy.strategy_name,
                "priority": strategy.get_priority(),
                "class_name": strategy.__class__.__name__,
            }
            for strategy in self.strategies
        ]

    async def resolve_with_details(self, url: str) -> ResolutionResult:
        """
        Resolve a link and report which tier produced the result.

        Args:
            url: Any URL; only aggregator links are resolved

        Returns:
            ResolutionResult whose resolved_url is always set
        """
        start_time = time.time()
        url = url if isinstance(url, str) else ""

        if not is_aggregator_url(url):
            return ResolutionResult(
                original_url=url,
                resolved_url=url,
                method=ResolutionMethod.PASSTHROUGH,
            )

        article_id = extract_article_id(url)
        if not article_id:
            logger.warning(f"No article id in aggregator URL: {url}")
            return ResolutionResult(
                original_url=url,
                resolved_url=url,
                method=ResolutionMethod.UNRESOLVED,
                processing_time=time.time() - start_time,
            )

        for strategy in self.strategies:
            try:
                candidate = await strategy.resolve(article_id)
            except Exception as e:
                logger.error(f"❌ Strategy {strategy.strategy_name} raised: {e}")
                continue

            if _is_absolute_http_url(candidate):
                return ResolutionResult(
                    original_url=url,
                    resolved_url=candidate,
                    method=_method_for(strategy),
                    article_id=article_id,
                    processing_time=time.time() - start_time,
                )

        logger.warning(f"⚠️ URL decoding failed: {url}")
        return ResolutionResult(
            original_url=url,
            resolved_url=url,
            method=ResolutionMethod.UNRESOLVED,
            article_id=article_id,
            processing_time=time.time() - start_time,
        )

    async def resolve(self, url: str) -> str:
        """
        Resolve a link to the publisher URL.

        Never raises: returns the original URL whenever resolution fails.
        """
        try:
            result = await self.resolve_with_details(url)
            return result.resolved_url
        except Exception as e:
            logger.warning(f"Failed to resolve URL: {url} ({e})")
            return url if isinstance(url, str) else ""

    def get_resolver_stats(self) -> Dict[str, Any]:
        """Get statistics about registered strategies."""
        return {
            "total_strategies": len(self.strategies),
            "strategies": self.list_strategies(),
            "names": [s.strategy_name for s in self.strategies],
        }


# Global resolver instance
_resolver: Optional[URLResolver] = None


def get_resolver() -> URLResolver:
    """
    Get the global resolver instance.

    Returns:
        URLResolver instance
    """
    global _resolver
    if _resolver is None:
        _resolver = URLResolver()
    return _resolver


async def resolve_url(url: str) -> str:
    """Convenience function for resolution using the global resolver."""
    return await get_resolver().resolve(url)
