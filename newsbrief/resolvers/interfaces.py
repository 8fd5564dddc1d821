"""Interfaces for the pluggable URL resolution chain."""

from abc import ABC, abstractmethod
from typing import Optional


class ResolutionStrategy(ABC):
    """One tier of aggregator link resolution."""

    @property
    @abstractmethod
    def strategy_name(self) -> str:
        """A unique name for this strategy, e.g., 'legacy_decode'."""
        pass

    @abstractmethod
    async def resolve(self, article_id: str) -> Optional[str]:
        """
        Try to turn an aggregator article identifier into a publisher URL.

        Args:
            article_id: Identifier taken from the aggregator redirect path

        Returns:
            Absolute http(s) URL, or None to let the next strategy try.
            Implementations must not raise.
        """
        pass

    def get_priority(self) -> int:
        """
        Get the position of this strategy in the chain.
        Lower numbers run first.

        Returns:
            Priority value (default: 100)
        """
        return 100
