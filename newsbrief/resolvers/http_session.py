"""Pooled aiohttp session shared by link resolution and article fetches."""

import asyncio
import logging
from typing import Optional

import aiohttp

from newsbrief.models.settings import Settings

from .config import get_config

logger = logging.getLogger(__name__)


class HTTPSessionManager:
    """Owns the shared session and rebinds it when the event loop changes.

    An aiohttp session only works on the loop that created it, so a call
    from a new loop (a second ``asyncio.run``) gets a fresh session.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self._session: Optional[aiohttp.ClientSession] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._lock: Optional[asyncio.Lock] = None
        self._lock_loop: Optional[asyncio.AbstractEventLoop] = None

    def _usable_on(self, loop: asyncio.AbstractEventLoop) -> bool:
        return (
            self._session is not None
            and not self._session.closed
            and self._loop is loop
        )

    async def get_session(self) -> aiohttp.ClientSession:
        """
        Get the session for the running loop, creating it if needed.

        Returns:
            Configured aiohttp.ClientSession instance
        """
        loop = asyncio.get_running_loop()
        if self._usable_on(loop):
            return self._session

        if self._lock_loop is not loop:
            self._lock = asyncio.Lock()
            self._lock_loop = loop

        async with self._lock:
            if not self._usable_on(loop):
                if self._session is not None and not self._session.closed:
                    # Bound to a finished loop; it cannot be closed from here
                    logger.debug("Dropping HTTP session from a previous event loop")
                self._session = self._create_session()
                self._loop = loop

        return self._session

    def _create_session(self) -> aiohttp.ClientSession:
        connector = aiohttp.TCPConnector(
            limit=get_config("http.connection_pool.total_limit", 20),
            limit_per_host=get_config("http.connection_pool.per_host_limit", 4),
            ttl_dns_cache=get_config("http.connection_pool.dns_cache_ttl", 300),
            use_dns_cache=True,
            keepalive_timeout=get_config("http.connection_pool.keepalive_timeout", 30),
        )

        # Per-request timeouts are passed by callers; this is only a ceiling
        timeout = aiohttp.ClientTimeout(
            total=get_config("http.timeout.total", 60),
            connect=get_config("http.timeout.connect", 10),
        )

        session = aiohttp.ClientSession(
            connector=connector,
            timeout=timeout,
            headers={
                "User-Agent": self.settings.browser_user_agent,
                "Accept-Language": self.settings.accept_language,
            },
            raise_for_status=False,
            trust_env=True,
        )
        logger.debug(
            f"HTTP session created with connection pool limits: "
            f"total={connector.limit}, per_host={connector.limit_per_host}"
        )
        return session

    async def close(self) -> None:
        """Close the session if it belongs to the running loop, then forget it."""
        session, self._session = self._session, None
        owner, self._loop = self._loop, None
        if session is None or session.closed:
            return
        if owner is asyncio.get_running_loop():
            await session.close()
            # Wait for connections to close
            await asyncio.sleep(0.1)
            logger.debug("HTTP session closed")
        else:
            logger.debug("Discarded HTTP session from a previous event loop")


_session_manager: Optional[HTTPSessionManager] = None


async def get_http_session(settings: Optional[Settings] = None) -> aiohttp.ClientSession:
    """
    Get the process-wide HTTP session for the running event loop.

    Args:
        settings: Used for default headers when the manager is first created
    """
    global _session_manager
    if _session_manager is None:
        _session_manager = HTTPSessionManager(settings)
    return await _session_manager.get_session()


async def close_http_session() -> None:
    """Close the global HTTP session."""
    global _session_manager
    if _session_manager:
        await _session_manager.close()
        _session_manager = None
