"""Sequential batch scraping of candidate news items."""

import asyncio
import logging
from typing import List, Optional

import aiohttp
from bs4 import UnicodeDammit

from newsbrief.clients.openrouter import OpenRouterClient
from newsbrief.core.content_extractor import ContentExtractor
from newsbrief.models.content import MIN_CONTENT_LENGTH, CandidateItem, ScrapedItem
from newsbrief.models.settings import Settings
from newsbrief.resolvers.http_session import get_http_session
from newsbrief.resolvers.orchestrator import URLResolver

logger = logging.getLogger(__name__)

ACCEPT_HTML = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"


def decode_html(raw_content: bytes, declared_charset: Optional[str] = None) -> str:
    """Decode a page body using the header charset, BOM or ``<meta>`` charset.

    Korean publishers often declare ``euc-kr`` only in the markup.
    """
    known = [declared_charset] if declared_charset else []
    dammit = UnicodeDammit(raw_content, known_definite_encodings=known, is_html=True)
    if dammit.unicode_markup is not None:
        return dammit.unicode_markup

    logger.debug("Could not detect page encoding, falling back to latin-1")
    return raw_content.decode("latin-1", errors="ignore")


class BatchScraper:
    """Resolves, fetches and extracts articles one at a time with a polite pause."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        resolver: Optional[URLResolver] = None,
        extractor: Optional[ContentExtractor] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """Initialize scraper.

        Args:
            settings: Settings instance for timeouts, headers and pacing
            resolver: Aggregator link resolver
            extractor: Article text extractor; by default the AI fallback is
                enabled when an OpenRouter key is configured
            session: HTTP session to use instead of the shared one
        """
        self.settings = settings or Settings()
        self.resolver = resolver or URLResolver(settings=self.settings)
        self.extractor = extractor or ContentExtractor(
            OpenRouterClient.from_settings(self.settings), settings=self.settings
        )
        self.request_delay = self.settings.scrape_request_delay
        self.fetch_timeout = self.settings.article_fetch_timeout
        self.headers = {
            "User-Agent": self.settings.browser_user_agent,
            "Accept": ACCEPT_HTML,
            "Accept-Language": self.settings.accept_language,
        }
        self._session = session

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is not None:
            return self._session
        return await get_http_session(self.settings)

    async def fetch_html(self, url: str) -> Optional[str]:
        """Download an article page.

        Returns:
            Page HTML, or None on a non-2xx status or any network error
        """
        try:
            session = await self._get_session()
            async with session.get(
                url,
                headers=self.headers,
                timeout=aiohttp.ClientTimeout(total=self.fetch_timeout),
            ) as response:
                if not 200 <= response.status < 300:
                    logger.warning(f"Failed to fetch article {url}: HTTP {response.status}")
                    return None

                raw_content = await response.read()
                return decode_html(raw_content, response.charset)

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Network error fetching article {url}: {e}")
            return None
        except (ValueError, TypeError) as e:
            logger.error(f"Request error fetching article {url}: {e}")
            return None

    async def scrape_article(self, url: str) -> str:
        """
        Resolve, fetch and extract a single article.

        Returns:
            Extracted text, or "" if any stage failed
        """
        stage = "resolve"
        try:
            actual_url = await self.resolver.resolve(url)
            logger.debug(f"Scraping: {actual_url}")

            stage = "fetch"
            html = await self.fetch_html(actual_url)
            if html is None:
                return ""

            stage = "extract"
            return await self.extractor.extract(html, actual_url)

        except Exception as e:
            logger.error(f"Failed to scrape {url} at {stage} stage: {e}")
            return ""

    async def scrape_all(self, items: List[CandidateItem]) -> List[ScrapedItem]:
        """
        Scrape every candidate in order, keeping only successful extractions.

        Args:
            items: Candidate items from the feed source

        Returns:
            Scraped items for the subset that produced enough text
        """
        logger.info(f"Scraping {len(items)} articles...")
        results: List[ScrapedItem] = []

        for item in items:
            try:
                content = await self.scrape_article(item.link)

                if len(content) >= MIN_CONTENT_LENGTH:
                    results.append(ScrapedItem.from_candidate(item, content))
                else:
                    logger.warning(f"Skipping article without content: {item.title}")

            except Exception as e:
                logger.error(f"Unexpected error scraping {item.link}: {e}")

            # Fixed pause after every item, success or failure
            await asyncio.sleep(self.request_delay)

        logger.info(f"Scraped {len(results)}/{len(items)} articles successfully")
        return results
