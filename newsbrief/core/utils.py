"""Utility functions for URL and text processing."""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urlparse


def extract_source_from_url(url: str) -> str:
    """Extract a human friendly publisher name from a URL.

    Removes common subdomains and TLDs, applies known mappings and
    returns a title-cased domain name. Returns an empty string if the
    URL cannot be parsed.
    """
    if not url:
        return ""

    try:
        parsed = urlparse(url)
        domain = parsed.netloc.lower()
        if not domain:
            return ""

        domain = re.sub(r"^(www\.|m\.|mobile\.|news\.)", "", domain)
        domain = re.sub(r"\.(com|org|net|io|co\.kr|or\.kr|co\.uk|kr)$", "", domain)

        source_mapping = {
            "chosun": "Chosun Ilbo",
            "joongang": "JoongAng Ilbo",
            "donga": "Dong-A Ilbo",
            "hani": "Hankyoreh",
            "khan": "Kyunghyang Shinmun",
            "yna": "Yonhap News",
            "hankyung": "Korea Economic Daily",
            "mk": "Maeil Business",
            "reuters": "Reuters",
            "bbc": "BBC",
            "nytimes": "The New York Times",
            "bloomberg": "Bloomberg",
            "google": "Google News",
        }

        if domain in source_mapping:
            return source_mapping[domain]

        parts = domain.split(".")
        # Section subdomains (biz.chosun.com) map to the publisher
        main_domain = parts[-1]
        if main_domain in source_mapping:
            return source_mapping[main_domain]
        return main_domain.replace("-", " ").replace("_", " ").title()
    except Exception:
        return ""


def clean_article_title(title: str, source: Optional[str] = None) -> str:
    """Clean feed titles by dropping the trailing publisher and extra whitespace.

    Aggregator feeds title items as ``Headline - Publisher``; the publisher
    part is removed when it matches ``source``.
    """
    if not title:
        return "Untitled Article"

    cleaned = " ".join(title.split())

    if source:
        suffix = f" - {source.strip()}"
        if cleaned.endswith(suffix) and len(cleaned) > len(suffix):
            cleaned = cleaned[: -len(suffix)]

    return cleaned.strip() or "Untitled Article"


def normalize_whitespace(text: str) -> str:
    """Collapse runs of whitespace into single spaces and trim."""
    return re.sub(r"\s+", " ", text or "").strip()
