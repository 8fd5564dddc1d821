"""RSS feed client producing candidate items for the scraper."""

import asyncio
import logging
import xml.etree.ElementTree as ET
from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import Dict, Iterable, List, Optional, Tuple, Union

import aiohttp

from newsbrief.core.utils import clean_article_title, extract_source_from_url
from newsbrief.models.content import CandidateItem

logger = logging.getLogger(__name__)

ATOM_NS = "{http://www.w3.org/2005/Atom}"

FeedSpec = Union[str, Tuple[str, str]]


class RSSClient:
    """Client for fetching and parsing RSS and Atom feeds."""

    def __init__(self, feeds: Iterable[FeedSpec], settings=None):
        """Initialize RSS client.

        Args:
            feeds: Feed URLs, or (category, url) pairs
            settings: Settings instance for configuration values
        """
        self.feeds: List[Tuple[str, str]] = []
        for feed in feeds or []:
            if isinstance(feed, tuple):
                self.feeds.append((feed[0], feed[1].strip()))
            else:
                self.feeds.append(("general", feed.strip()))

        self.feed_timeout = settings.rss_feed_timeout if settings else 30.0
        self.user_agent = (
            settings.browser_user_agent if settings else "Mozilla/5.0 (newsbrief)"
        )

    @classmethod
    def from_settings(cls, settings) -> "RSSClient":
        """Build a client from the RSS_FEEDS setting."""
        return cls(settings.feed_entries(), settings=settings)

    async def get_candidate_items(
        self, days: Optional[int] = None, limit: Optional[int] = None
    ) -> List[CandidateItem]:
        """Get items from all feeds, newest first.

        Args:
            days: Only keep items published within this many days
            limit: Maximum number of items to return

        Returns:
            List of candidate items
        """
        if not self.feeds:
            logger.warning("No RSS feed URLs configured")
            return []

        threshold = (
            datetime.now(timezone.utc) - timedelta(days=days) if days else None
        )

        all_items: List[CandidateItem] = []
        async with aiohttp.ClientSession() as session:
            tasks = [
                self._fetch_feed(session, category, url)
                for category, url in self.feeds
            ]
            results = await asyncio.gather(*tasks, return_exceptions=True)

            for (_, url), result in zip(self.feeds, results):
                if isinstance(result, Exception):
                    logger.error(f"Error fetching feed {url}: {result}")
                else:
                    all_items.extend(result)

        if threshold:
            all_items = [
                item
                for item in all_items
                if item.publish_time is None or item.publish_time >= threshold
            ]

        oldest = datetime.min.replace(tzinfo=timezone.utc)
        all_items.sort(key=lambda i: i.publish_time or oldest, reverse=True)

        if limit is not None:
            all_items = all_items[:limit]

        logger.info(
            f"Retrieved {len(all_items)} items from {len(self.feeds)} RSS feeds"
        )
        return all_items

    async def _fetch_feed(
        self, session: aiohttp.ClientSession, category: str, feed_url: str
    ) -> List[CandidateItem]:
        """Fetch and parse a single feed. Failures yield an empty list."""
        try:
            headers = {"User-Agent": self.user_agent}
            timeout = aiohttp.ClientTimeout(total=self.feed_timeout)
            async with session.get(
                feed_url, headers=headers, timeout=timeout
            ) as response:
                if response.status != 200:
                    logger.error(
                        f"Failed to fetch RSS feed {feed_url}: HTTP {response.status}"
                    )
                    return []

                content = await response.text()
                return self.parse_feed(content, feed_url, category)

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Network error fetching RSS feed {feed_url}: {e}")
            return []
        except Exception as e:
            logger.error(f"Unexpected error fetching RSS feed {feed_url}: {e}")
            return []

    def parse_feed(
        self, xml_content: str, feed_url: str, category: str = "general"
    ) -> List[CandidateItem]:
        """Parse RSS 2.0 or Atom XML into candidate items.

        Args:
            xml_content: Feed XML string
            feed_url: Original feed URL, used in log messages
            category: Category assigned to every item of the feed

        Returns:
            List of parsed items; unparseable entries are skipped
        """
        try:
            root = ET.fromstring(xml_content)
        except ET.ParseError as e:
            logger.error(f"XML parsing error for {feed_url}: {e}")
            return []

        if root.tag == "rss":
            entries = root.findall(".//item")
            feed_title = self._get_text(root.find(".//channel/title"), "Unknown Feed")
            parse = self._parse_rss_item
        elif root.tag == f"{ATOM_NS}feed":
            entries = root.findall(f".//{ATOM_NS}entry")
            feed_title = self._get_text(root.find(f"{ATOM_NS}title"), "Unknown Feed")
            parse = self._parse_atom_entry
        else:
            logger.warning(f"Unrecognized feed format for {feed_url}")
            return []

        items = []
        for entry in entries:
            try:
                item = parse(entry, feed_title, category)
            except (ValueError, TypeError, AttributeError) as e:
                logger.debug(f"Error parsing feed entry: {e}")
                continue
            if item:
                items.append(item)

        logger.debug(f"Parsed {len(items)} items from {feed_title}")
        return items

    def _parse_rss_item(
        self, item: ET.Element, feed_title: str, category: str
    ) -> Optional[CandidateItem]:
        link = self._get_text(item.find("link"))
        if not link:
            return None

        # Aggregator feeds name the publisher in <source>
        source = self._get_text(item.find("source"))
        if not source:
            source = extract_source_from_url(link) or feed_title

        return CandidateItem(
            title=clean_article_title(self._get_text(item.find("title")), source),
            link=link,
            source=source,
            category=category,
            publish_time=self._parse_date(self._get_text(item.find("pubDate"))),
        )

    def _parse_atom_entry(
        self, entry: ET.Element, feed_title: str, category: str
    ) -> Optional[CandidateItem]:
        link_elem = entry.find(f'{ATOM_NS}link[@rel="alternate"]')
        if link_elem is None:
            link_elem = entry.find(f"{ATOM_NS}link")
        link = link_elem.get("href", "").strip() if link_elem is not None else ""
        if not link:
            return None

        source = self._get_text(entry.find(f"{ATOM_NS}source/{ATOM_NS}title"))
        if not source:
            source = extract_source_from_url(link) or feed_title

        pub_date = self._get_text(
            entry.find(f"{ATOM_NS}published"),
            self._get_text(entry.find(f"{ATOM_NS}updated")),
        )

        return CandidateItem(
            title=clean_article_title(self._get_text(entry.find(f"{ATOM_NS}title")), source),
            link=link,
            source=source,
            category=category,
            publish_time=self._parse_date(pub_date),
        )

    def _get_text(self, element: Optional[ET.Element], default: str = "") -> str:
        """Safely get text from XML element."""
        if element is not None and element.text:
            return element.text.strip()
        return default

    def _parse_date(self, date_str: str) -> Optional[datetime]:
        """Parse RFC 822 or ISO 8601 dates into timezone-aware datetimes."""
        if not date_str:
            return None

        try:
            dt = parsedate_to_datetime(date_str)
        except (TypeError, ValueError):
            try:
                dt = datetime.fromisoformat(date_str.replace("Z", "+00:00"))
            except ValueError:
                logger.debug(f"Unparseable feed date: {date_str}")
                return None

        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt

    async def test_feeds(self) -> Dict[str, bool]:
        """Test connectivity to all configured feeds.

        Returns:
            Dictionary mapping feed URLs to connection status
        """
        if not self.feeds:
            return {}

        results = {}
        async with aiohttp.ClientSession() as session:
            tasks = [self._test_feed(session, url) for _, url in self.feeds]
            test_results = await asyncio.gather(*tasks, return_exceptions=True)

            for (_, url), result in zip(self.feeds, test_results):
                if isinstance(result, Exception):
                    results[url] = False
                    logger.error(f"RSS feed test failed for {url}: {result}")
                else:
                    results[url] = result

        return results

    async def _test_feed(self, session: aiohttp.ClientSession, feed_url: str) -> bool:
        """Check that a feed answers with feed-like XML."""
        try:
            headers = {"User-Agent": self.user_agent}
            timeout = aiohttp.ClientTimeout(total=self.feed_timeout)
            async with session.get(
                feed_url, headers=headers, timeout=timeout
            ) as response:
                if response.status != 200:
                    return False
                content = await response.text()
                return any(tag in content.lower() for tag in ("<rss", "<feed"))

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.debug(f"Feed test network error for {feed_url}: {e}")
            return False
