from __future__ import annotations

import logging
import threading
import time
from typing import Callable

logger = logging.getLogger(__name__)


class SaveScheduler:
    """
    Debounced single writer.

    ``request()`` arms (or re-arms) a deadline ``delay`` seconds out; a
    background thread waits for the deadline to pass without further requests
    and then calls ``write``. ``flush()`` cancels the deadline and writes on the
    caller's thread. Both paths run ``write`` under the same lock, so two writes
    never overlap.

    Errors from the background path cannot reach a caller; they are logged and
    kept in ``last_error``. Nothing is retried until the next request.
    """

    def __init__(self, write: Callable[[], None], *, delay: float = 0.01, name: str = "docstore-save"):
        self._write = write
        self._delay = max(float(delay), 0.0)
        self._name = name

        self._cond = threading.Condition()
        self._deadline: float | None = None
        self._closed = False
        self._thread: threading.Thread | None = None

        self._write_lock = threading.Lock()
        self.last_error: Exception | None = None
        self.writes = 0

    @property
    def pending(self) -> bool:
        with self._cond:
            return self._deadline is not None

    def request(self) -> None:
        with self._cond:
            if self._closed:
                logger.debug("%s: save requested after close; ignored", self._name)
                return
            self._deadline = time.monotonic() + self._delay
            if self._thread is None:
                self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
                self._thread.start()
            self._cond.notify()

    def flush(self) -> None:
        """Write now, cancelling any pending deadline. Errors propagate."""
        with self._cond:
            self._deadline = None
        self._do_write()

    def close(self) -> None:
        """Write out a pending request, then stop the background thread."""
        with self._cond:
            had_pending = self._deadline is not None
            self._deadline = None
            self._closed = True
            self._cond.notify()
            thread = self._thread
        if thread is not None:
            thread.join()
        if had_pending:
            self._do_write()

    def _do_write(self) -> None:
        with self._write_lock:
            self._write()
            self.writes += 1
            self.last_error = None

    def _run(self) -> None:
        while True:
            with self._cond:
                while self._deadline is None and not self._closed:
                    self._cond.wait()
                if self._closed:
                    return
                remaining = self._deadline - time.monotonic()
                if remaining > 0:
                    # Woken early by a re-arm or timed out; re-check the deadline.
                    self._cond.wait(remaining)
                    continue
                self._deadline = None
            try:
                self._do_write()
            except Exception as e:
                logger.exception("%s: debounced save failed", self._name)
                self.last_error = e
