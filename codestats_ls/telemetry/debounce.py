"""Coalesce a burst of "XP changed" signals into rate-limited pulse attempts."""
from __future__ import annotations

import logging
import queue
import threading
import time
from typing import Callable

logger = logging.getLogger(__name__)

DEBOUNCE_SECONDS = 10.0
TICK_SECONDS = 10.0
QUEUE_CAPACITY = 100

_STOP = object()


class PulseDebouncer:
    """Single-consumer gate between edit events and pulse emission.

    Signals carry no payload, only "something changed", so a full queue just
    drops the new signal. The consumer emits at most once per interval: a
    signal arriving sooner than `interval` after the previous attempt is
    discarded. A ticker posts a signal every `tick_interval` so a trickle of
    edits still gets flushed without waiting for the next one.
    """

    def __init__(
        self,
        emit: Callable[[], None],
        stop_event: threading.Event,
        interval: float = DEBOUNCE_SECONDS,
        tick_interval: float = TICK_SECONDS,
        capacity: int = QUEUE_CAPACITY,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._emit = emit
        self._stop = stop_event
        self.interval = interval
        self.tick_interval = tick_interval
        self._clock = clock
        self._signals: queue.Queue = queue.Queue(maxsize=capacity)
        self._last_emit_at = clock()
        self.emit_count = 0

    def notify(self) -> bool:
        """Post a dirty signal without blocking. False if it was coalesced."""
        try:
            self._signals.put_nowait(True)
            return True
        except queue.Full:
            return False

    def wake(self) -> None:
        """Unblock the consumer so it can observe the stop event."""
        try:
            self._signals.put_nowait(_STOP)
        except queue.Full:
            # The consumer has signals to read; it will see the stop event.
            pass

    def handle_signal(self) -> bool:
        """Apply the interval gate to one signal. True if an emission was attempted."""
        now = self._clock()
        if now - self._last_emit_at < self.interval:
            return False
        try:
            self._emit()
        except Exception:
            logger.exception("Pulse emission failed")
        self.emit_count += 1
        self._last_emit_at = self._clock()
        return True

    def run(self) -> None:
        """Consumer loop. Returns once the stop event is set."""
        while not self._stop.is_set():
            signal = self._signals.get()
            if signal is _STOP or self._stop.is_set():
                break
            self.handle_signal()
        logger.debug("Debounce consumer stopped")

    def run_ticker(self) -> None:
        """Post a signal every tick_interval until the stop event is set."""
        while not self._stop.wait(self.tick_interval):
            self.notify()
        logger.debug("Pulse ticker stopped")
