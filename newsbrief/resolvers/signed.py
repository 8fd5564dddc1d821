"""Resolver for signed Google News article identifiers.

Newer identifiers no longer embed the publisher URL. Resolving them takes two
requests: the article page exposes a signature/timestamp pair, and the
internal ``batchexecute`` RPC trades that pair for the real URL.
"""

import asyncio
import json
import logging
import re
from typing import Optional
from urllib.parse import quote, urlparse

import aiohttp
from bs4 import BeautifulSoup

from newsbrief.models.resolution import SigningParams
from newsbrief.models.settings import Settings

from .http_session import get_http_session
from .interfaces import ResolutionStrategy

logger = logging.getLogger(__name__)

AGGREGATOR_HOST = "news.google.com"
STATIC_ASSET_HOST = "gstatic.com"
ARTICLE_PAGE_URL = "https://news.google.com/rss/articles/{article_id}"
BATCH_EXECUTE_URL = "https://news.google.com/_/DotsSplashUi/data/batchexecute"

# Opaque protocol constants, kept exactly as the endpoint expects them
RPC_ID = "Fbv4je"
GARTURL_TEMPLATE = (
    '["garturlreq",[["X","X",["X","X"],null,null,1,1,"{locale}",null,1,null,'
    'null,null,null,null,0,1],"X","X",1,[1,1,1],1,1,null,0,0,null,0],'
    '"{article_id}",{timestamp},"{signature}"]'
)

SIGNATURE_ATTR = "data-n-a-sg"
TIMESTAMP_ATTR = "data-n-a-ts"

URL_PATTERN = re.compile(r"https?://[a-zA-Z0-9\-._~:/?#\[\]@!$&'()*+,;=%]+")
UNICODE_ESCAPE_PATTERN = re.compile(r"\\\\u([0-9a-fA-F]{4})")
# Characters left unescaped in the f.req form value
FORM_SAFE_CHARS = "-_.!~*'()"


def build_batch_execute_body(
    article_id: str, signature: str, timestamp: str, locale: str = "KR:ko"
) -> str:
    """Build the form-encoded ``f.req`` body for the URL exchange RPC."""
    inner_payload = GARTURL_TEMPLATE.format(
        locale=locale,
        article_id=article_id,
        timestamp=timestamp,
        signature=signature,
    )
    payload = json.dumps([[[RPC_ID, inner_payload]]], separators=(",", ":"))
    return "f.req=" + quote(payload, safe=FORM_SAFE_CHARS)


def unescape_batch_response(data: str) -> str:
    """Undo the JSON-in-string escaping of a batchexecute response."""
    data = UNICODE_ESCAPE_PATTERN.sub(lambda m: chr(int(m.group(1), 16)), data)
    return data.replace('\\"', '"').replace("\\/", "/")


def _is_aggregator_host(url: str) -> bool:
    try:
        host = (urlparse(url).hostname or "").lower()
    except ValueError:
        return True
    return (
        host == AGGREGATOR_HOST
        or host == STATIC_ASSET_HOST
        or host.endswith("." + STATIC_ASSET_HOST)
    )


def find_publisher_url(data: str) -> Optional[str]:
    """Return the first URL in the response not pointing back at Google."""
    for match in URL_PATTERN.finditer(unescape_batch_response(data)):
        url = match.group(0)
        if not _is_aggregator_host(url):
            return url
    return None


class SignedRequestResolver:
    """Resolves signed article identifiers through the aggregator's RPC."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """Initialize the resolver.

        Args:
            settings: Settings instance for timeouts, locale and User-Agent
            session: HTTP session to use instead of the shared one
        """
        settings = settings or Settings()
        self.settings = settings
        self.params_timeout = settings.signing_params_timeout
        self.exchange_timeout = settings.batch_execute_timeout
        self.locale = settings.aggregator_locale
        self.user_agent = settings.browser_user_agent
        self._session = session

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is not None:
            return self._session
        return await get_http_session(self.settings)

    async def fetch_signing_params(self, article_id: str) -> Optional[SigningParams]:
        """Scrape the signature and timestamp for an article.

        Args:
            article_id: Aggregator article identifier

        Returns:
            SigningParams, or None if the page is unreachable or lacks either
            attribute
        """
        url = ARTICLE_PAGE_URL.format(article_id=article_id)
        try:
            session = await self._get_session()
            async with session.get(
                url,
                headers={"User-Agent": self.user_agent},
                timeout=aiohttp.ClientTimeout(total=self.params_timeout),
            ) as response:
                if not 200 <= response.status < 300:
                    logger.debug(
                        f"Signing params fetch failed: HTTP {response.status} for {url}"
                    )
                    return None
                html = await response.text()

            soup = BeautifulSoup(html, "html.parser")
            container = soup.select_one("c-wiz > div")
            if container is None or not container.get(SIGNATURE_ATTR):
                container = soup.find(attrs={SIGNATURE_ATTR: True})
            if container is None:
                logger.debug(f"No signing container found for {article_id}")
                return None

            signature = container.get(SIGNATURE_ATTR)
            timestamp = container.get(TIMESTAMP_ATTR)
            if not signature or not timestamp:
                return None

            return SigningParams(signature=signature, timestamp=timestamp)

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.debug(f"Network error fetching signing params for {url}: {e}")
            return None
        except (KeyError, ValueError, TypeError) as e:
            logger.debug(f"Parse error reading signing params for {url}: {e}")
            return None
        except Exception as e:
            logger.debug(f"Unexpected error fetching signing params for {url}: {e}")
            return None

    async def exchange_for_url(
        self, article_id: str, signature: str, timestamp: str
    ) -> Optional[str]:
        """Trade a signature pair for the publisher URL.

        Returns:
            Publisher URL, or None if the response holds no usable URL
        """
        body = build_batch_execute_body(article_id, signature, timestamp, self.locale)
        headers = {
            "Content-Type": "application/x-www-form-urlencoded;charset=UTF-8",
            "User-Agent": self.user_agent,
        }

        try:
            session = await self._get_session()
            async with session.post(
                BATCH_EXECUTE_URL,
                data=body,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self.exchange_timeout),
            ) as response:
                if not 200 <= response.status < 300:
                    logger.debug(f"batchexecute returned HTTP {response.status}")
                    return None
                data = await response.text()

            return find_publisher_url(data)

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.debug(f"Network error in batchexecute for {article_id}: {e}")
            return None
        except (KeyError, ValueError, TypeError) as e:
            logger.debug(f"Parse error in batchexecute response for {article_id}: {e}")
            return None
        except Exception as e:
            logger.debug(f"Unexpected batchexecute error for {article_id}: {e}")
            return None

    async def resolve_signed(self, article_id: str) -> Optional[str]:
        """Fetch signing params and exchange them for the publisher URL."""
        params = await self.fetch_signing_params(article_id)
        if params is None:
            return None
        return await self.exchange_for_url(
            article_id, params.signature, params.timestamp
        )


class SignedExchangeStrategy(ResolutionStrategy):
    """Resolution tier backed by :class:`SignedRequestResolver`."""

    def __init__(self, resolver: Optional[SignedRequestResolver] = None):
        self.resolver = resolver or SignedRequestResolver()

    @property
    def strategy_name(self) -> str:
        return "signed_exchange"

    def get_priority(self) -> int:
        return 20

    async def resolve(self, article_id: str) -> Optional[str]:
        logger.debug("Signed identifier detected, calling batchexecute")
        url = await self.resolver.resolve_signed(article_id)
        if url:
            logger.debug(f"batchexecute decoded URL: {url}")
        return url
