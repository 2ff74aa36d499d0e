"""Keyed pool of bounded worker queues.

Each key hashes to one partition: a bounded FIFO queue served by a single
thread. Tasks for the same key therefore run one at a time in submission
order, while different partitions run concurrently. Submitting never
blocks; a full partition rejects the task and the caller accounts for it.
"""

from __future__ import annotations

import queue
import threading
import zlib
from collections.abc import Callable

from mediahook.exceptions import ConfigurationError
from mediahook.logging import bind_context, clear_context, get_logger

logger = get_logger(__name__)

Task = Callable[[], None]

DEFAULT_NUM_WORKERS = 10
DEFAULT_QUEUE_SIZE = 100

# Queued after the last task to tell a worker to exit
_STOP = object()


class _QueueWorker:
    """One partition: a bounded queue and the thread draining it."""

    def __init__(self, index: int, queue_size: int) -> None:
        self.index = index
        self._queue: queue.Queue[object] = queue.Queue(maxsize=queue_size)
        self._killed = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            name=f"mediahook-worker-{index}",
            daemon=True,
        )

    def start(self) -> None:
        self._thread.start()

    def offer(self, task: Task) -> bool:
        try:
            self._queue.put_nowait(task)
        except queue.Full:
            return False
        return True

    def qsize(self) -> int:
        return self._queue.qsize()

    def close(self) -> None:
        """Stop after everything already queued has run."""
        self._queue.put(_STOP)

    def kill(self) -> None:
        """Discard queued tasks and stop after the current one."""
        self._killed.set()
        with self._queue.mutex:
            discarded = len(self._queue.queue)
            self._queue.queue.clear()
            self._queue.not_full.notify_all()
        if discarded:
            logger.info("discarded queued webhook tasks", worker=self.index, count=discarded)
        self._queue.put(_STOP)

    def join(self, timeout: float | None = None) -> None:
        self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def _run(self) -> None:
        bind_context(worker=self._thread.name)
        try:
            while True:
                task = self._queue.get()
                if task is _STOP or self._killed.is_set():
                    return
                try:
                    task()  # type: ignore[operator]
                except Exception:
                    logger.exception("webhook task failed")
        finally:
            clear_context()


class QueuePool:
    """Fixed set of partitions with keyed, non-blocking submission.

    Example:
        ```python
        pool = QueuePool(num_workers=10, queue_size=100)
        if not pool.submit("room-a", task):
            ...  # partition full, task was not queued
        pool.drain()
        ```
    """

    def __init__(
        self,
        num_workers: int = DEFAULT_NUM_WORKERS,
        queue_size: int = DEFAULT_QUEUE_SIZE,
    ) -> None:
        if num_workers < 1:
            raise ConfigurationError(f"num_workers must be at least 1, got {num_workers}")
        if queue_size < 1:
            raise ConfigurationError(f"queue_size must be at least 1, got {queue_size}")

        self.num_workers = num_workers
        self.queue_size = queue_size
        self._lock = threading.Lock()
        self._closed = False
        self._workers = [_QueueWorker(i, queue_size) for i in range(num_workers)]
        for worker in self._workers:
            worker.start()

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def partition(self, key: str) -> int:
        """Index of the partition serving ``key``. Stable across processes."""
        return zlib.crc32(key.encode("utf-8")) % self.num_workers

    def pending(self) -> int:
        """Tasks queued and not yet started, across all partitions."""
        return sum(worker.qsize() for worker in self._workers)

    def submit(self, key: str, task: Task) -> bool:
        """Queue ``task`` on the partition for ``key``.

        Returns:
            False without running the task if the partition is full or
            the pool is shutting down.
        """
        worker = self._workers[self.partition(key)]
        with self._lock:
            if self._closed:
                return False
            return worker.offer(task)

    def drain(self) -> None:
        """Stop accepting tasks and block until all queued tasks have run."""
        with self._lock:
            already_closed = self._closed
            self._closed = True
        if not already_closed:
            for worker in self._workers:
                worker.close()
        for worker in self._workers:
            worker.join()

    def kill(self) -> None:
        """Stop accepting tasks and discard everything still queued.

        Returns without waiting; a task already running finishes on its
        own thread.
        """
        with self._lock:
            self._closed = True
        for worker in self._workers:
            worker.kill()

    def join(self, timeout: float | None = None) -> None:
        """Wait for worker threads to exit after drain or kill."""
        for worker in self._workers:
            worker.join(timeout)

    def is_alive(self) -> bool:
        return any(worker.is_alive() for worker in self._workers)


__all__ = ["DEFAULT_NUM_WORKERS", "DEFAULT_QUEUE_SIZE", "QueuePool", "Task"]
