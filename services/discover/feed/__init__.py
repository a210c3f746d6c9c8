"""
Discover feed — engine and context label.

Usage:
    from services.discover.feed import DiscoverFeedEngine, build_feed_engine
"""

from __future__ import annotations

from services.discover.feed.context import build_context_label
from services.discover.feed.engine import DiscoverFeedEngine, FeedGenerationResult, build_feed_engine

__all__ = [
    "DiscoverFeedEngine",
    "FeedGenerationResult",
    "build_context_label",
    "build_feed_engine",
]
