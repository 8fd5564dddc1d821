"""Content models for the scraping pipeline."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# Extraction quality bounds shared by the extractor and the output model
MIN_CONTENT_LENGTH = 100
MAX_CONTENT_LENGTH = 3000
TRUNCATION_MARKER = "…"


class CandidateItem(BaseModel):
    """A news item supplied by a feed, before its article text is known."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(..., description="Headline")
    link: str = Field(..., description="Feed link (may be an aggregator redirect)")
    source: str = Field(..., description="Publisher name")
    category: str = Field("general", description="Feed category")
    publish_time: Optional[datetime] = Field(None, description="Publication time")


class ScrapedItem(CandidateItem):
    """A candidate item together with its extracted article text."""

    content: str = Field(
        ...,
        min_length=MIN_CONTENT_LENGTH,
        max_length=MAX_CONTENT_LENGTH + len(TRUNCATION_MARKER),
        description="Cleaned article body",
    )

    @classmethod
    def from_candidate(cls, item: CandidateItem, content: str) -> "ScrapedItem":
        """Attach extracted content to a candidate item."""
        return cls(**item.model_dump(), content=content)
