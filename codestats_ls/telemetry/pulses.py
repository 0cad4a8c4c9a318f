"""Live pulse path: drain the aggregator, deliver, fall back to the cache."""
from __future__ import annotations

import logging

from codestats_ls.errors import CacheError
from codestats_ls.models import Pulse
from codestats_ls.telemetry.aggregator import XpAggregator
from codestats_ls.telemetry.cache import PulseCache
from codestats_ls.telemetry.share import PulseClient

logger = logging.getLogger(__name__)


class PulseSender:
    """Turns accumulated XP into one delivered (or cached) pulse."""

    def __init__(self, aggregator: XpAggregator, client: PulseClient, cache: PulseCache):
        self.aggregator = aggregator
        self.client = client
        self.cache = cache

    def send_pulse(self) -> Pulse | None:
        """Drain, deliver, cache on failure. Returns the pulse built, if any.

        The aggregator is empty afterwards whatever the outcome. If the pulse
        can be neither delivered nor cached, its XP is lost and logged.
        """
        pulse = self.aggregator.drain()
        if pulse is None:
            return None

        ok, reason = self.client.deliver(pulse)
        if ok:
            logger.info("XP pulse sent successfully")
            return pulse

        logger.error("Error sending XP pulse from %s: %s", pulse.coded_at, reason)
        try:
            self.cache.save(pulse)
            logger.debug("Cached XP pulse %s for retry", pulse.coded_at)
        except CacheError as e:
            logger.error("Error caching XP pulse from %s, %d XP dropped: %s",
                         pulse.coded_at, pulse.total_xp, e)
        return pulse
