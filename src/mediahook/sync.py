"""Thread synchronization primitives shared by the delivery workers."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class AtomicCounter:
    """Integer counter whose updates are atomic across threads.

    Every read-modify-write happens under one lock, so ``swap`` can
    hand the accumulated value to exactly one caller.
    """

    def __init__(self, value: int = 0) -> None:
        self._value = value
        self._lock = threading.Lock()

    def add(self, delta: int) -> int:
        """Add ``delta`` and return the new value."""
        with self._lock:
            self._value += delta
            return self._value

    def inc(self) -> int:
        return self.add(1)

    def load(self) -> int:
        with self._lock:
            return self._value

    def swap(self, value: int) -> int:
        """Store ``value`` and return the previous value."""
        with self._lock:
            previous = self._value
            self._value = value
            return previous


class ReadWriteLock:
    """Many concurrent readers or a single writer.

    Writers are preferred: once a writer is waiting, new readers block
    until it has finished, so a steady stream of filter evaluations
    cannot starve a credential rotation. Not reentrant.

    Example:
        ```python
        lock = ReadWriteLock()

        with lock.read_lock():
            key, secret = credentials

        with lock.write_lock():
            credentials = (new_key, new_secret)
        ```
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read_lock(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_lock(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


__all__ = ["AtomicCounter", "ReadWriteLock"]
