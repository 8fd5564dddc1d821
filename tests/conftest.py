import base64
from unittest.mock import AsyncMock, Mock

import pytest


@pytest.fixture
def settings():
    """Settings isolated from the environment, with no pacing delay."""
    from newsbrief.models.settings import Settings

    return Settings(
        _env_file=None,
        openrouter_api_key=None,
        rss_feeds=None,
        scrape_request_delay=0.0,
    )


def encode_legacy_id(url: str, two_byte_header: bool = False) -> str:
    """Build a legacy aggregator article id that embeds ``url``."""
    body = url.encode("latin-1")
    if two_byte_header:
        header = bytes([0x80 + len(body), 0x01])
    else:
        header = bytes([len(body)])
    blob = b"\x08\x13\x22" + header + body + b"\xd2\x01\x00"
    return base64.urlsafe_b64encode(blob).decode("ascii").rstrip("=")


def mock_response(status: int = 200, text: str = "", charset=None):
    """An aiohttp-like response object."""
    response = AsyncMock()
    response.status = status
    response.text.return_value = text
    response.read.return_value = text.encode(charset or "utf-8")
    response.charset = charset
    return response


def mock_context(response):
    """Wrap a response in an async context manager like session.get() returns."""
    context_manager = Mock()
    context_manager.__aenter__ = AsyncMock(return_value=response)
    context_manager.__aexit__ = AsyncMock(return_value=None)
    return context_manager


def mock_session(get_response=None, post_response=None):
    """A session whose get/post return the given responses."""
    session = Mock()
    session.get = Mock(return_value=mock_context(get_response or mock_response()))
    session.post = Mock(return_value=mock_context(post_response or mock_response()))
    return session


# Aggregator article page and batchexecute reply for a signed identifier
ARTICLE_PAGE = """
<html><body>
<c-wiz jsrenderer="x">
  <div jscontroller="y" data-n-a-sg="S" data-n-a-ts="T" data-n-a-id="abc"></div>
</c-wiz>
</body></html>
"""

BATCH_RESPONSE = (
    ")]}'\n\n"
    '[["wrb.fr","Fbv4je","[\\"garturlres\\",\\"https://news.google.com/rss/articles/x\\",'
    '\\"https://publisher.example/article/42\\",1]",null,null,null,"generic"],'
    '["di",42],["af.httprm",42,"123",7]]'
)

