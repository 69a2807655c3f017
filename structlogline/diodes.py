"""Ring buffers that never block writers and drop data when the reader lags."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol

Alerter = Callable[[int], None]

_log = logging.getLogger(__name__)


class Empty(Exception):
    """Raised by try_next when no data is ready to be read."""


class Diode(Protocol):
    """Anything with set(data) and a non-blocking try_next()."""

    def set(self, data: Any) -> None:
        ...

    def try_next(self) -> Any:
        ...


@dataclass(frozen=True)
class _Bucket:
    data: Any
    seq: int  # the write index at the time of writing


class _RingBuffer:
    """Shared read side of the diodes."""

    def __init__(self, size: int, alerter: Optional[Alerter]) -> None:
        if size <= 0:
            raise ValueError(f"diode size must be positive, got {size}")
        self._buffer: list[Optional[_Bucket]] = [None] * size
        self._lock = threading.Lock()
        self._read_index = 0
        self._alerter: Optional[Alerter] = alerter

    def __len__(self) -> int:
        return len(self._buffer)

    def _swap_out(self, idx: int) -> Optional[_Bucket]:
        with self._lock:
            result = self._buffer[idx]
            self._buffer[idx] = None
            return result

    def _read_next(self) -> Any:
        result = self._swap_out(self._read_index % len(self._buffer))
        if result is None:
            raise Empty
        if result.seq < self._read_index:
            # A stale value that was effectively dropped.
            raise Empty
        if result.seq > self._read_index:
            dropped = result.seq - self._read_index
            self._read_index = result.seq
            if self._alerter is not None:
                self._alerter(dropped)
        self._read_index += 1
        return result.data


class OneToOne(_RingBuffer):
    """Diode for a single writer and a single reader."""

    def __init__(self, size: int, alerter: Optional[Alerter] = None) -> None:
        super().__init__(size, alerter)
        self._write_index = 0

    def set(self, data: Any) -> None:
        """Store data in the next slot, overwriting what is there."""
        idx = self._write_index % len(self._buffer)
        bucket = _Bucket(data, self._write_index)
        self._write_index += 1
        with self._lock:
            self._buffer[idx] = bucket

    def try_next(self) -> Any:
        """Return the next value, or raise Empty if none is available.

        When the writer has lapped the reader, the alerter is told how many
        values were dropped and reading continues from the newest one.
        """
        return self._read_next()


class ManyToOne(_RingBuffer):
    """Diode for many writers and a single reader."""

    def __init__(self, size: int, alerter: Optional[Alerter] = None) -> None:
        super().__init__(size, alerter)
        self._write_index = -1

    def set(self, data: Any) -> None:
        """Store data in the next slot; safe to call from many threads."""
        size = len(self._buffer)
        while True:
            with self._lock:
                self._write_index += 1
                write_index = self._write_index
                idx = write_index % size
                old = self._buffer[idx]
                if old is not None and write_index >= size and old.seq > write_index - size:
                    collided = True
                else:
                    self._buffer[idx] = _Bucket(data, write_index)
                    collided = False
            if not collided:
                return
            _log.warning("Diode set collision: consider using a larger diode")

    def try_next(self) -> Any:
        """Return the next value, or raise Empty if none is available.

        When the writers have lapped the reader, the alerter is told how many
        values were dropped and reading continues from the newest one.
        """
        return self._read_next()


class Poller:
    """Wraps a diode and polls it at an interval until data arrives."""

    def __init__(self, diode: Diode, interval: float = 0.01) -> None:
        self.diode = diode
        self.interval = interval
        self._done = threading.Event()

    def set(self, data: Any) -> None:
        self.diode.set(data)

    def try_next(self) -> Any:
        return self.diode.try_next()

    def next(self) -> Any:
        """Return the next value, or None once cancelled and nothing is left."""
        while True:
            try:
                return self.diode.try_next()
            except Empty:
                if self._done.is_set():
                    return None
                self._done.wait(self.interval)

    def cancel(self) -> None:
        """Stop waiting for data; pending values can still be read."""
        self._done.set()


class Waiter:
    """Wraps a diode and sleeps on a condition until data arrives."""

    def __init__(self, diode: Diode) -> None:
        self.diode = diode
        self._cond = threading.Condition()
        self._done = threading.Event()

    def set(self, data: Any) -> None:
        self.diode.set(data)
        with self._cond:
            self._cond.notify_all()

    def try_next(self) -> Any:
        return self.diode.try_next()

    def next(self) -> Any:
        """Return the next value, or None once cancelled and nothing is left."""
        with self._cond:
            while True:
                try:
                    return self.diode.try_next()
                except Empty:
                    if self._done.is_set():
                        return None
                    self._cond.wait()

    def cancel(self) -> None:
        """Wake any reader and stop waiting for data."""
        self._done.set()
        with self._cond:
            self._cond.notify_all()