"""Aggregator link resolution and article extraction for news digests."""

__version__ = "1.0.0"
