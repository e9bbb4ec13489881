import threading
import time

import pytest

from manimforge.utils.cache import ScriptCache


def test_lookup_miss_returns_none(cache):
    assert cache.lookup("Pythagorean theorem") is None


def test_store_and_lookup(cache):
    cache.store("Pythagorean theorem", "raw", "validated")

    assert cache.lookup("Pythagorean theorem") == "validated"
    entry = cache.get_entry("Pythagorean theorem")
    assert entry.raw_text == "raw"
    assert entry.created_at


def test_topics_are_not_normalized(cache):
    cache.store("Pythagorean theorem", "raw", "validated")

    assert cache.lookup("pythagorean theorem") is None
    assert cache.lookup("Pythagorean theorem ") is None


def test_later_store_wins(cache):
    cache.store("topic", "raw-1", "first")
    cache.store("topic", "raw-2", "second")

    assert cache.lookup("topic") == "second"
    assert [e.topic for e in cache.list_entries()] == ["topic"]


def test_entries_persist_across_instances(tmp_path):
    first = ScriptCache(cache_dir=str(tmp_path / "c"))
    first.store("topic", "raw", "validated")
    first.close()

    second = ScriptCache(cache_dir=str(tmp_path / "c"))
    assert second.lookup("topic") == "validated"
    second.close()


def test_get_or_create_uses_cache(cache):
    cache.store("topic", "raw", "cached")

    def producer():
        raise AssertionError("no debería generar")

    assert cache.get_or_create("topic", producer) == "cached"


def test_get_or_create_stores_result(cache):
    assert cache.get_or_create("topic", lambda: ("raw", "fresh")) == "fresh"
    assert cache.get_entry("topic").raw_text == "raw"


def test_concurrent_misses_generate_once(cache):
    calls = []
    started = threading.Event()

    def producer():
        calls.append(1)
        started.set()
        time.sleep(0.2)
        return "raw", "validated"

    results = []

    def worker():
        results.append(cache.get_or_create("topic", producer))

    leader = threading.Thread(target=worker)
    leader.start()
    started.wait(timeout=5)
    followers = [threading.Thread(target=worker) for _ in range(3)]
    for t in followers:
        t.start()
    for t in [leader] + followers:
        t.join(timeout=5)

    assert len(calls) == 1
    assert results == ["validated"] * 4


def test_failure_propagates_and_releases_slot(cache):
    def failing():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        cache.get_or_create("topic", failing)

    assert cache.get_or_create("topic", lambda: ("raw", "ok")) == "ok"


def test_concurrent_stores_keep_every_topic(cache):
    topics = [f"topic-{n}" for n in range(20)]
    threads = [
        threading.Thread(target=cache.store, args=(topic, "raw", "validated"))
        for topic in topics
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    assert sorted(item["topic"] for item in cache.get_index()) == sorted(topics)


def test_stats_and_clear(cache):
    cache.store("a", "raw", "validated")
    stats = cache.get_stats()
    assert stats["scripts_count"] == 1
    assert stats["items_count"] >= 2

    cache.clear_all()
    assert cache.lookup("a") is None
    assert cache.list_entries() == []
