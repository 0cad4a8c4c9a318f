"""Long-lived XP agent: owns the aggregator, the pulse paths and their threads."""
from __future__ import annotations

import logging
import threading

from codestats_ls.config import Config
from codestats_ls.languages import document_path, language_for_uri
from codestats_ls.telemetry.aggregator import XpAggregator
from codestats_ls.telemetry.cache import PulseCache
from codestats_ls.telemetry.debounce import PulseDebouncer
from codestats_ls.telemetry.flusher import CacheFlusher
from codestats_ls.telemetry.pulses import PulseSender
from codestats_ls.telemetry.share import PulseClient

logger = logging.getLogger(__name__)

JOIN_TIMEOUT_SECONDS = 15.0


class XpAgent:
    """Entry point for edit events; runs the debounce, ticker and flush loops.

    Usage:
        agent = XpAgent.from_config(config, cache_dir)
        agent.start()
        agent.document_changed("file:///src/main.rs", 3)
        ...
        agent.stop()
    """

    def __init__(
        self,
        client: PulseClient,
        cache: PulseCache,
        debounce_interval: float | None = None,
        tick_interval: float | None = None,
        flush_interval: float | None = None,
        flush_pacing: float | None = None,
    ):
        self.stop_event = threading.Event()
        self.aggregator = XpAggregator()
        self.client = client
        self.cache = cache
        self.sender = PulseSender(self.aggregator, client, cache)

        debounce_kwargs = {}
        if debounce_interval is not None:
            debounce_kwargs["interval"] = debounce_interval
        if tick_interval is not None:
            debounce_kwargs["tick_interval"] = tick_interval
        self.debouncer = PulseDebouncer(self._emit, self.stop_event, **debounce_kwargs)

        flush_kwargs = {}
        if flush_interval is not None:
            flush_kwargs["interval"] = flush_interval
        if flush_pacing is not None:
            flush_kwargs["pacing"] = flush_pacing
        self.flusher = CacheFlusher(cache, client, self.stop_event, **flush_kwargs)

        self._threads: list[threading.Thread] = []

    @classmethod
    def from_config(cls, config: Config, cache_dir: str, **kwargs) -> XpAgent:
        """Build an agent from startup config. Raises CacheError if the cache can't open."""
        client = PulseClient(config.api_url, config.api_token)
        cache = PulseCache(cache_dir)
        return cls(client, cache, **kwargs)

    def _emit(self) -> None:
        self.sender.send_pulse()

    def document_changed(self, uri: str, change_count: int) -> int:
        """Attribute one edit event. Returns the XP recorded (0 for unknown files)."""
        language = language_for_uri(uri)
        if language is None:
            logger.warning("No language for file: %s", document_path(uri))
            return 0

        self.aggregator.record(language, change_count)
        self.debouncer.notify()
        return change_count

    def set_client_info(self, name: str | None, version: str | None = None) -> None:
        self.client.set_client_info(name, version)

    @property
    def running(self) -> bool:
        return bool(self._threads)

    def start(self) -> None:
        """Start the background loops. Calling twice is a no-op."""
        if self._threads:
            return
        targets = (
            ("pulse-debouncer", self.debouncer.run),
            ("pulse-ticker", self.debouncer.run_ticker),
            ("cache-flusher", self.flusher.run),
        )
        for name, target in targets:
            thread = threading.Thread(target=target, name=name, daemon=True)
            thread.start()
            self._threads.append(thread)
        logger.debug("XP agent started")

    def stop(self, flush: bool = True) -> None:
        """Stop the loops, waiting for any in-flight attempt to finish.

        With flush=True, pending XP gets one final delivery attempt (and is
        cached on failure) so nothing accumulated is left behind.
        """
        self.stop_event.set()
        self.debouncer.wake()
        for thread in self._threads:
            thread.join(JOIN_TIMEOUT_SECONDS)
            if thread.is_alive():
                logger.warning("%s did not stop within %.0fs", thread.name, JOIN_TIMEOUT_SECONDS)
        self._threads = []

        if flush:
            self.sender.send_pulse()
        logger.debug("XP agent stopped")
