"""A non-blocking, thread-safe writer that hands data to a background thread."""

from __future__ import annotations

import contextlib
import threading
from datetime import timedelta
from typing import Any, Optional, Union

from .diodes import Alerter, ManyToOne, Poller, Waiter


class DiodeWriter:
    """Wraps a writer with a many-to-one diode so writes never block.

    If the wrapped writer cannot keep up, older data is dropped and the
    alerter is told how many items were missed. With a positive
    poll_interval a poller is used, otherwise a waiter.
    """

    def __init__(
        self,
        out: Any,
        size: int,
        poll_interval: Union[float, timedelta] = 0,
        alerter: Optional[Alerter] = None,
    ) -> None:
        self._out = out
        if isinstance(poll_interval, timedelta):
            poll_interval = poll_interval.total_seconds()
        ring = ManyToOne(size, alerter)
        self._diode: Union[Poller, Waiter]
        if poll_interval > 0:
            self._diode = Poller(ring, interval=poll_interval)
        else:
            self._diode = Waiter(ring)
        self._thread = threading.Thread(target=self._poll, daemon=True)
        self._thread.start()

    def write(self, data: Union[bytes, bytearray, memoryview, str]) -> int:
        """Queue a copy of data for writing and return its length."""
        if isinstance(data, str):
            item: Union[bytes, str] = data
        else:
            item = bytes(data)
        self._diode.set(item)
        return len(item)

    def close(self) -> None:
        """Flush pending data, stop the background thread and close out."""
        self._diode.cancel()
        self._thread.join()
        close = getattr(self._out, "close", None)
        if callable(close):
            close()

    def __enter__(self) -> "DiodeWriter":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _poll(self) -> None:
        while True:
            item = self._diode.next()
            if item is None:
                return
            # Write errors are ignored, as there is no caller to report them to.
            with contextlib.suppress(OSError, ValueError):
                self._out.write(item)