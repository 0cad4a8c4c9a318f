"""Background retry of cached pulses."""
from __future__ import annotations

import logging
import threading
from typing import Callable

from codestats_ls.errors import CacheError
from codestats_ls.telemetry.cache import PulseCache
from codestats_ls.telemetry.share import PulseClient

logger = logging.getLogger(__name__)

FLUSH_INTERVAL_SECONDS = 30.0
PACING_SECONDS = 0.25


class CacheFlusher:
    """Periodically re-sends every cached pulse, one at a time.

    Attempts are spaced by `pacing` seconds whatever their outcome, so a long
    offline spell doesn't turn into a burst against the API. A pulse leaves
    the cache only after it was delivered.
    """

    def __init__(
        self,
        cache: PulseCache,
        client: PulseClient,
        stop_event: threading.Event,
        interval: float = FLUSH_INTERVAL_SECONDS,
        pacing: float = PACING_SECONDS,
        sleep: Callable[[float], object] | None = None,
    ):
        self.cache = cache
        self.client = client
        self._stop = stop_event
        self.interval = interval
        self.pacing = pacing
        self._sleep = sleep or stop_event.wait

    def flush(self) -> int:
        """One pass over the cache. Returns the number of pulses delivered.

        Raises:
            CacheError: listing the cache or removing a delivered pulse failed.
        """
        sent_count = 0
        for pulse in self.cache.list():
            ok, reason = self.client.deliver(pulse)
            if ok:
                self.cache.remove(pulse)
                sent_count += 1
            else:
                logger.error("Error sending cached XP pulse from %s: %s", pulse.coded_at, reason)
            self._sleep(self.pacing)

        if sent_count > 0:
            logger.info("Sent %d cached XP pulse%s", sent_count, "" if sent_count == 1 else "s")
        return sent_count

    def run(self) -> None:
        """Flush now, then every `interval` seconds until the stop event is set."""
        while not self._stop.is_set():
            try:
                self.flush()
            except CacheError as e:
                logger.error("Error sending cached XP pulses: %s", e)
            except Exception:
                logger.exception("Unexpected error sending cached XP pulses")
            if self._stop.wait(self.interval):
                break
        logger.debug("Cache flusher stopped")
