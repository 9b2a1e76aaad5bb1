import threading
import time
from concurrent.futures import Executor, Future, ThreadPoolExecutor

import pytest

from lottery_ensemble.model_store import ModelStore


class InlineExecutor(Executor):
    """Runs submitted work immediately on the calling thread."""

    def submit(self, fn, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


def test_model_is_built_once():
    store = ModelStore()
    calls = []

    def build():
        calls.append(1)
        return object()

    first = store.get_or_create("megasena", build)
    second = store.get_or_create("megasena", build)

    assert first is second
    assert len(calls) == 1
    assert "megasena" in store
    assert store.get("quina") is None


def test_concurrent_requests_share_one_build():
    store = ModelStore()
    calls = []
    barrier = threading.Barrier(8)
    results = []

    def build():
        calls.append(1)
        time.sleep(0.05)
        return object()

    def worker():
        barrier.wait()
        results.append(store.get_or_create("megasena", build))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(calls) == 1
    assert len(results) == 8
    assert all(r is results[0] for r in results)


def test_contexts_are_independent():
    store = ModelStore()
    assert store.get_or_create("megasena", lambda: "a") == "a"
    assert store.get_or_create("quina", lambda: "b") == "b"


def test_failed_build_is_not_cached():
    store = ModelStore()

    def broken():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        store.get_or_create("megasena", broken)
    assert "megasena" not in store
    assert store.get_or_create("megasena", lambda: "model") == "model"


def test_invalidate_forces_rebuild():
    store = ModelStore()
    store.get_or_create("megasena", lambda: "old")
    store.invalidate("megasena")
    assert store.get_or_create("megasena", lambda: "new") == "new"

    store.clear()
    assert "megasena" not in store


def test_background_build_returns_none_until_ready():
    executor = ThreadPoolExecutor(max_workers=1)
    store = ModelStore(executor)
    release = threading.Event()

    def build():
        release.wait(5)
        return "model"

    assert store.get_or_create("megasena", build) is None
    assert store.get("megasena") is None

    release.set()
    executor.shutdown(wait=True)
    assert store.get("megasena") == "model"
    assert "megasena" in store


def test_background_failure_is_logged_and_retried(caplog):
    store = ModelStore(InlineExecutor())

    def broken():
        raise RuntimeError("boom")

    assert store.get_or_create("megasena", broken) is None
    assert "failed" in caplog.text
    assert store.get_or_create("megasena", lambda: "model") == "model"
