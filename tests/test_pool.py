"""Unit tests for the keyed worker queue pool."""

from __future__ import annotations

import threading
from collections.abc import Iterator

import pytest
import structlog
from conftest import wait_for

from mediahook.exceptions import ConfigurationError
from mediahook.webhooks import QueuePool


@pytest.fixture
def pool() -> Iterator[QueuePool]:
    pool = QueuePool(num_workers=4, queue_size=10)
    yield pool
    pool.kill()


def _blocker(started: threading.Event, release: threading.Event):
    def task() -> None:
        started.set()
        release.wait(timeout=5)

    return task


class TestQueuePool:
    """Tests for QueuePool submission and ordering."""

    def test_invalid_sizes_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            QueuePool(num_workers=0)
        with pytest.raises(ConfigurationError):
            QueuePool(queue_size=0)

    def test_partition_is_stable(self, pool: QueuePool) -> None:
        """The same key always maps to the same partition."""
        assert pool.partition("room-a") == pool.partition("room-a")
        assert 0 <= pool.partition("room-b") < pool.num_workers

    def test_runs_submitted_task(self, pool: QueuePool) -> None:
        done = threading.Event()

        assert pool.submit("room-a", done.set)
        assert done.wait(timeout=5)

    def test_same_key_runs_in_order(self, pool: QueuePool) -> None:
        """Tasks for one key run one at a time in submission order."""
        results: list[int] = []

        for i in range(10):
            assert pool.submit("room-a", lambda i=i: results.append(i))
        pool.drain()

        assert results == list(range(10))

    def test_different_keys_run_concurrently(self) -> None:
        """A blocked partition does not hold up other partitions."""
        pool = QueuePool(num_workers=2, queue_size=10)
        keys = ["key-0"]
        # pick a second key on the other partition
        for i in range(1, 100):
            if pool.partition(f"key-{i}") != pool.partition("key-0"):
                keys.append(f"key-{i}")
                break
        started, release = threading.Event(), threading.Event()
        done = threading.Event()

        try:
            pool.submit(keys[0], _blocker(started, release))
            assert started.wait(timeout=5)
            pool.submit(keys[1], done.set)
            assert done.wait(timeout=5)
        finally:
            release.set()
            pool.drain()

    def test_full_partition_rejects_without_running(self) -> None:
        """submit returns False immediately when the queue is at capacity."""
        pool = QueuePool(num_workers=1, queue_size=1)
        started, release = threading.Event(), threading.Event()
        ran: list[str] = []

        try:
            assert pool.submit("k", _blocker(started, release))
            assert started.wait(timeout=5)
            assert pool.submit("k", lambda: ran.append("queued"))
            assert not pool.submit("k", lambda: ran.append("rejected"))
        finally:
            release.set()
            pool.drain()

        assert ran == ["queued"]

    def test_failing_task_does_not_stop_worker(self, pool: QueuePool) -> None:
        def boom() -> None:
            raise RuntimeError("boom")

        done = threading.Event()
        pool.submit("room-a", boom)
        pool.submit("room-a", done.set)

        assert done.wait(timeout=5)


class TestShutdown:
    """Tests for drain and kill."""

    def test_drain_runs_everything_queued(self) -> None:
        pool = QueuePool(num_workers=2, queue_size=50)
        counter: list[int] = []
        lock = threading.Lock()

        def work() -> None:
            with lock:
                counter.append(1)

        for i in range(40):
            pool.submit(f"room-{i % 5}", work)
        pool.drain()

        assert len(counter) == 40
        assert not pool.is_alive()

    def test_submit_after_drain_rejected(self) -> None:
        pool = QueuePool(num_workers=1, queue_size=5)
        pool.drain()

        assert pool.closed
        assert not pool.submit("k", lambda: None)

    def test_kill_discards_queued(self) -> None:
        """kill drops queued tasks; only the running one completes."""
        pool = QueuePool(num_workers=1, queue_size=10)
        started, release = threading.Event(), threading.Event()
        ran: list[int] = []

        pool.submit("k", _blocker(started, release))
        assert started.wait(timeout=5)
        for i in range(5):
            pool.submit("k", lambda i=i: ran.append(i))

        pool.kill()
        release.set()
        pool.join(timeout=5)

        assert ran == []
        assert pool.pending() == 0
        assert wait_for(lambda: not pool.is_alive())

    def test_drain_after_kill_returns(self) -> None:
        pool = QueuePool(num_workers=2, queue_size=5)
        pool.kill()
        pool.drain()

        assert not pool.is_alive()

    def test_worker_binds_log_context(self) -> None:
        """Log lines written inside a task carry the worker's thread name."""
        pool = QueuePool(num_workers=1, queue_size=5)
        seen: list[dict[str, object]] = []

        pool.submit("k", lambda: seen.append(structlog.contextvars.get_contextvars()))
        pool.drain()

        assert seen == [{"worker": "mediahook-worker-0"}]
        assert "worker" not in structlog.contextvars.get_contextvars()
