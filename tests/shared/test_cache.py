# tests/shared/test_cache.py
import pytest

from shared.cache import BoundedCache


def test_get_counts_hits_and_misses():
    c = BoundedCache(4)
    assert c.get("a") is None
    c.put("a", 1)
    assert c.get("a") == 1
    assert c.get("a") == 1
    assert (c.hits, c.misses) == (2, 1)


def test_put_evicts_least_recently_used():
    c = BoundedCache(2)
    c.put("a", 1)
    c.put("b", 2)
    c.get("a")  # "b" is now the oldest
    c.put("c", 3)
    assert "a" in c and "c" in c
    assert "b" not in c
    assert len(c) == 2
    assert c.evictions == 1


def test_clear_resets_counters():
    c = BoundedCache(2)
    c.put("a", 1)
    c.get("a")
    c.get("zz")
    c.clear()
    assert len(c) == 0
    assert (c.hits, c.misses, c.evictions) == (0, 0, 0)


def test_maxsize_must_be_positive():
    with pytest.raises(ValueError):
        BoundedCache(0)
