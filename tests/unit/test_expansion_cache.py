"""Unit tests for familycal.expansion_cache."""

from datetime import datetime

import pytest

from familycal.exceptions import InvalidWindowError
from familycal.expander import ExpanderConfig
from familycal.expansion_cache import ExpansionCache

pytestmark = pytest.mark.unit

START = datetime(2025, 1, 1)
END = datetime(2025, 1, 31, 23, 59)


class TestExpansionCache:
    def test_miss_then_hit(self, make_template) -> None:
        cache = ExpansionCache()
        templates = [make_template(recurrence="weekly")]

        first = cache.get_or_expand("v1", templates, START, END)
        second = cache.get_or_expand("v1", templates, START, END)

        assert len(first) == 4
        assert first == second
        assert cache.get_stats()["hits"] == 1
        assert cache.get_stats()["misses"] == 1
        assert cache.get_stats()["hit_rate"] == 50.0

    def test_new_version_expands_again(self, make_template) -> None:
        cache = ExpansionCache()
        cache.get_or_expand("v1", [make_template()], START, END)
        events = cache.get_or_expand("v2", [], START, END)
        assert events == []

    def test_string_bounds_share_key_with_datetimes(self, make_template) -> None:
        cache = ExpansionCache()
        cache.get_or_expand("v1", [make_template()], START, END)
        cache.get_or_expand("v1", [make_template()], "2025-01-01T00:00:00", "2025-01-31T23:59:00")
        assert cache.get_stats()["hits"] == 1

    def test_returned_list_is_a_copy(self, make_template) -> None:
        cache = ExpansionCache()
        events = cache.get_or_expand("v1", [make_template()], START, END)
        events.clear()
        assert len(cache.get_or_expand("v1", [make_template()], START, END)) == 1

    def test_fifo_eviction(self) -> None:
        cache = ExpansionCache(max_size=2)
        for version in ("a", "b", "c"):
            cache.get_or_expand(version, [], START, END)

        assert list(cache.cache) == [("b", START, END), ("c", START, END)]
        assert cache.get_stats()["evictions"] == 1
        assert cache.get_stats()["current_size"] == 2

    def test_invalidate_all(self, make_template) -> None:
        cache = ExpansionCache()
        cache.get_or_expand("v1", [make_template()], START, END)
        cache.invalidate_all()
        assert cache.get_stats()["current_size"] == 0
        assert cache.get_stats()["invalidations"] == 1

    def test_invalid_window_is_not_cached(self) -> None:
        cache = ExpansionCache()
        with pytest.raises(InvalidWindowError):
            cache.get_or_expand("v1", [], END, START)
        assert cache.cache == {}

    def test_config_applies_to_misses(self, make_template) -> None:
        cache = ExpansionCache(config=ExpanderConfig(max_iterations_per_template=2))
        events = cache.get_or_expand("v1", [make_template(recurrence="daily")], START, END)
        assert len(events) == 2

    def test_from_settings(self) -> None:
        cache = ExpansionCache.from_settings({"cache_size": 4, "max_iterations": 7})
        assert cache.max_size == 4
        assert cache.config.max_iterations_per_template == 7

    def test_empty_stats(self) -> None:
        stats = ExpansionCache(max_size=0).get_stats()
        assert stats["hit_rate"] == 0.0
        assert stats["max_size"] == 1
