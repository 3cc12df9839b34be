"""Caller-side memoization of expansion results.

Expansion is pure, so a result can be reused for as long as the template set
and the window are unchanged. Entries are keyed by the caller's
templates-version (any hashable that changes whenever the stored templates
change) and the two window bounds.
"""

from __future__ import annotations

import logging
from collections.abc import Hashable, Iterable
from datetime import datetime
from typing import Any, Optional

from .config_manager import get_config_value
from .expander import ExpanderConfig, TemplateLike, expand, normalize_window
from .models import EventTemplate

logger = logging.getLogger(__name__)

CacheKey = tuple[Hashable, datetime, datetime]


class ExpansionCache:
    """Cache for expansion results keyed by (templates-version, start, end).

    Example:
        cache = ExpansionCache(max_size=16)
        events = cache.get_or_expand(store.version, templates, start, end)

        # After templates change, either bump the version or:
        cache.invalidate_all()
    """

    def __init__(self, max_size: int = 32, config: Optional[ExpanderConfig] = None):
        """Initialize expansion cache.

        Args:
            max_size: Maximum number of cached windows (FIFO eviction when full)
            config: Expansion limits used for cache misses
        """
        self.cache: dict[CacheKey, tuple[EventTemplate, ...]] = {}
        self.max_size = max(1, max_size)
        self.config = config
        self.stats = {
            "hits": 0,
            "misses": 0,
            "evictions": 0,
            "invalidations": 0,
        }

    @classmethod
    def from_settings(cls, settings: Any) -> ExpansionCache:
        """Build a cache sized by ``cache_size`` with expansion limits from settings."""
        size = get_config_value(settings, "cache_size", 32)
        return cls(max_size=int(size), config=ExpanderConfig.from_settings(settings))

    def get(self, key: CacheKey) -> Optional[list[EventTemplate]]:
        cached = self.cache.get(key)
        if cached is None:
            self.stats["misses"] += 1
            logger.debug("Expansion cache miss: %s", key)
            return None
        self.stats["hits"] += 1
        logger.debug("Expansion cache hit: %s", key)
        return list(cached)

    def set(self, key: CacheKey, events: Iterable[EventTemplate]) -> None:
        self.cache[key] = tuple(events)

        # FIFO eviction: drop the oldest inserted window.
        if len(self.cache) > self.max_size:
            oldest_key = next(iter(self.cache))
            del self.cache[oldest_key]
            self.stats["evictions"] += 1
            logger.debug(
                "Evicted oldest expansion window %s (cache size: %d/%d)",
                oldest_key,
                len(self.cache),
                self.max_size,
            )

    def get_or_expand(
        self,
        version: Hashable,
        templates: Iterable[TemplateLike],
        range_start: Any,
        range_end: Any,
    ) -> list[EventTemplate]:
        """Return cached occurrences for the window, expanding on a miss.

        Raises:
            InvalidWindowError: If the window is malformed
        """
        start, end = normalize_window(range_start, range_end)
        key: CacheKey = (version, start, end)

        cached = self.get(key)
        if cached is not None:
            return cached

        events = expand(templates, start, end, self.config)
        self.set(key, events)
        return list(events)

    def invalidate_all(self) -> None:
        """Drop every cached window."""
        old_size = len(self.cache)
        self.cache.clear()
        self.stats["invalidations"] += 1
        logger.info("Invalidated expansion cache (cleared %d entries)", old_size)

    def get_stats(self) -> dict[str, Any]:
        """Get cache statistics, including hit rate as a percentage."""
        total_requests = self.stats["hits"] + self.stats["misses"]
        hit_rate = (self.stats["hits"] / total_requests * 100) if total_requests > 0 else 0.0

        return {
            "hits": self.stats["hits"],
            "misses": self.stats["misses"],
            "hit_rate": round(hit_rate, 2),
            "evictions": self.stats["evictions"],
            "invalidations": self.stats["invalidations"],
            "current_size": len(self.cache),
            "max_size": self.max_size,
        }
