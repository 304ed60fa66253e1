import threading
import time

import pytest

from cowncurrency.cache import Cache


def test_value_is_remembered():
    cache = Cache()
    assert cache.get_or_insert_with("k", lambda k: k * 2) == "kk"
    assert cache.get_or_insert_with("k", lambda k: "other") == "kk"


def test_same_key_computed_once_under_concurrency():
    cache = Cache()
    calls = []
    lock = threading.Lock()

    def compute(key):
        with lock:
            calls.append(key)
        time.sleep(0.05)
        return key.upper()

    results = []

    def run():
        results.append(cache.get_or_insert_with("abc", compute))

    threads = [threading.Thread(target=run) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert cache.get_or_insert_with("abc", compute) == "ABC"
    assert calls == ["abc"]
    assert results == ["ABC"] * 8


def test_different_keys_run_concurrently():
    cache = Cache()
    barrier = threading.Barrier(2)
    results = {}

    def compute(key):
        barrier.wait(timeout=5)
        return key.upper()

    def run(key):
        results[key] = cache.get_or_insert_with(key, compute)

    threads = [threading.Thread(target=run, args=(k,)) for k in ("x", "y")]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert cache.get_or_insert_with("x", lambda k: "unused") == "X"
    assert cache.get_or_insert_with("y", lambda k: "unused") == "Y"
    assert results == {"x": "X", "y": "Y"}


def test_replace_with_recomputes():
    cache = Cache()
    cache.get_or_insert_with("k", lambda k: 1)
    assert cache.replace_with("k", lambda k: 2) == 2
    assert cache.get_or_insert_with("k", lambda k: 3) == 2


def test_replace_with_inserts_missing_key():
    cache = Cache()
    assert cache.replace_with("new", lambda k: k + "!") == "new!"
    assert cache.get_or_insert_with("new", lambda k: "unused") == "new!"


def test_failed_computation_is_retried():
    cache = Cache()

    def fail(key):
        raise ValueError("boom")

    with pytest.raises(ValueError):
        cache.get_or_insert_with("k", fail)
    assert cache.get_or_insert_with("k", lambda k: "ok") == "ok"