"""Offline decoder for legacy Google News article identifiers.

Older identifiers are base64 encoded protobuf-like blobs that carry the
publisher URL directly::

    08 13 22 | len | url bytes ... | d2 01 00

The format is undocumented, so decoding is best effort and fails closed.
"""

import base64
import binascii
import logging
from typing import Optional
from urllib.parse import urlparse

from .interfaces import ResolutionStrategy

logger = logging.getLogger(__name__)

LEGACY_PREFIX = b"\x08\x13\x22"
LEGACY_SUFFIX = b"\xd2\x01\x00"
URL_PREFIXES = (b"http://", b"https://")


def _b64decode(article_id: str) -> bytes:
    """Decode standard or url-safe base64, tolerating missing padding."""
    normalized = article_id.strip().replace("-", "+").replace("_", "/")
    normalized += "=" * (-len(normalized) % 4)
    return base64.b64decode(normalized)


def decode_legacy(article_id: str) -> Optional[str]:
    """Recover the publisher URL embedded in a legacy article identifier.

    Returns None when the identifier is malformed, truncated, or uses the
    newer signed scheme.
    """
    if not article_id:
        return None

    try:
        data = _b64decode(article_id)
    except (binascii.Error, ValueError) as e:
        logger.debug(f"Legacy decode: not base64 ({e})")
        return None

    if data.startswith(LEGACY_PREFIX):
        data = data[len(LEGACY_PREFIX) :]
    if data.endswith(LEGACY_SUFFIX):
        data = data[: -len(LEGACY_SUFFIX)]

    if not data:
        return None

    if data[0] >= 0x80:
        length = data[0] - 0x80
        payload = data[2 : 2 + length]
    else:
        length = data[0]
        payload = data[1 : 1 + length]

    # Declared length running past the end means the blob was truncated
    if len(payload) != length:
        return None

    if not payload.startswith(URL_PREFIXES):
        return None

    url = payload.decode("latin-1")
    try:
        if not urlparse(url).netloc:
            return None
    except ValueError:
        return None
    return url


class LegacyDecodeStrategy(ResolutionStrategy):
    """Resolution tier that decodes legacy identifiers without network access."""

    @property
    def strategy_name(self) -> str:
        return "legacy_decode"

    def get_priority(self) -> int:
        return 10

    async def resolve(self, article_id: str) -> Optional[str]:
        try:
            url = decode_legacy(article_id)
        except Exception as e:
            logger.debug(f"Legacy decode failed unexpectedly for {article_id}: {e}")
            return None

        if url:
            logger.debug(f"Base64 decoded URL: {url}")
        return url
