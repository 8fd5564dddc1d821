"""Article body extraction: reader-mode heuristics with an AI fallback."""

import asyncio
import logging
from typing import Optional

import aiohttp
from bs4 import BeautifulSoup
from readability import Document

from newsbrief.clients.interfaces import TextGenerator
from newsbrief.core.utils import normalize_whitespace
from newsbrief.models.content import (
    MAX_CONTENT_LENGTH,
    MIN_CONTENT_LENGTH,
    TRUNCATION_MARKER,
)

logger = logging.getLogger(__name__)

NO_CONTENT_SENTINEL = "NO_CONTENT"

AI_EXTRACTION_PROMPT = """Extract only the news article body from the HTML below.
Leave out ads, menus, footers, related-article lists and any other page chrome,
and return the article text as plain text.
If there is no article body, return "{sentinel}".

HTML:
{html}"""


def finalize_content(text: str) -> str:
    """Apply the output length policy to extracted text.

    Text shorter than the minimum is treated as a failed extraction and
    becomes ``""``; longer text is cut and marked with an ellipsis.
    """
    text = (text or "").strip()
    if len(text) < MIN_CONTENT_LENGTH:
        return ""
    if len(text) > MAX_CONTENT_LENGTH:
        return text[:MAX_CONTENT_LENGTH] + TRUNCATION_MARKER
    return text


class ContentExtractor:
    """Extracts readable article text from raw HTML."""

    def __init__(self, text_generator: Optional[TextGenerator] = None, settings=None):
        """Initialize extractor.

        Args:
            text_generator: Generative model for the fallback; None disables it
            settings: Settings instance for fallback thresholds
        """
        self.text_generator = text_generator
        if settings:
            self.ai_min_html_length = settings.ai_fallback_min_html_length
            self.ai_max_html_chars = settings.ai_fallback_max_html_chars
        else:
            self.ai_min_html_length = 500
            self.ai_max_html_chars = 15000

        if text_generator is None:
            logger.warning("No text generator configured - AI fallback disabled")

    def extract_with_readability(self, html: str, url: str) -> str:
        """Run reader-mode extraction and return the plain article text."""
        if not html or not html.strip():
            return ""

        try:
            doc = Document(html, url=url)
            summary_html = doc.summary(html_partial=True)
        except Exception as e:
            # readability raises Unparseable and lxml errors on junk markup
            logger.debug(f"Readability could not parse {url}: {e}")
            return ""

        soup = BeautifulSoup(summary_html, "html.parser")
        return normalize_whitespace(soup.get_text(separator=" "))

    async def extract_with_ai(self, html: str) -> Optional[str]:
        """Ask the generative model for the article body.

        Returns:
            Article text, or None when skipped or unsuccessful
        """
        if self.text_generator is None:
            logger.debug("AI fallback skipped: no text generator configured")
            return None

        if len(html) < self.ai_min_html_length:
            logger.warning(f"AI fallback skipped: HTML too short ({len(html)} chars)")
            return None

        prompt = AI_EXTRACTION_PROMPT.format(
            sentinel=NO_CONTENT_SENTINEL, html=html[: self.ai_max_html_chars]
        )

        try:
            logger.debug("Calling text generator for content extraction...")
            text = (await self.text_generator.generate_text(prompt) or "").strip()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Network error in AI content extraction: {e}")
            return None
        except Exception as e:
            logger.error(f"AI content extraction failed: {e}")
            return None

        if text == NO_CONTENT_SENTINEL or len(text) < MIN_CONTENT_LENGTH:
            logger.warning("AI returned NO_CONTENT or insufficient content")
            return None

        logger.debug(f"AI extracted {len(text)} chars")
        return text

    async def extract(self, html: str, resolved_url: str) -> str:
        """
        Extract article text from HTML.

        Args:
            html: Raw page HTML
            resolved_url: Final article URL, used to resolve relative links

        Returns:
            Text between the minimum and maximum lengths (truncated with a
            marker when longer), or "" if extraction failed. Never raises.
        """
        try:
            content = self.extract_with_readability(html, resolved_url)

            if len(content) < MIN_CONTENT_LENGTH:
                logger.debug(f"Readability failed, trying AI fallback: {resolved_url}")
                ai_content = await self.extract_with_ai(html or "")
                if ai_content:
                    content = ai_content
                    logger.debug(f"AI content extraction succeeded: {resolved_url}")

            content = finalize_content(content)
            if not content:
                logger.warning(f"Content extraction failed: {resolved_url}")
            return content

        except Exception as e:
            logger.error(f"Unexpected extraction error for {resolved_url}: {e}")
            return ""
