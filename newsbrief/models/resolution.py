"""Data models for aggregator URL resolution using Pydantic for validation."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ResolutionMethod(str, Enum):
    """Which resolution tier produced the final URL."""

    PASSTHROUGH = "passthrough"
    LEGACY_DECODE = "legacy_decode"
    SIGNED_EXCHANGE = "signed_exchange"
    UNRESOLVED = "unresolved"


class SigningParams(BaseModel):
    """Per-article signature pair scraped from the aggregator article page."""

    model_config = ConfigDict(frozen=True)

    signature: str = Field(..., min_length=1, description="data-n-a-sg value")
    timestamp: str = Field(..., min_length=1, description="data-n-a-ts value")


class ResolutionResult(BaseModel):
    """Result of resolving one aggregator link."""

    model_config = ConfigDict(use_enum_values=True)

    original_url: str = Field(..., description="URL that was resolved")
    resolved_url: str = Field(..., description="Best URL found (may be the original)")
    method: ResolutionMethod = Field(..., description="Tier that produced the URL")
    article_id: Optional[str] = Field(None, description="Aggregator article identifier")
    processing_time: Optional[float] = Field(
        None, description="Time taken to resolve in seconds"
    )

    @property
    def resolved(self) -> bool:
        """True when a publisher URL was found for an aggregator link."""
        return self.method in (
            ResolutionMethod.LEGACY_DECODE,
            ResolutionMethod.SIGNED_EXCHANGE,
        )
