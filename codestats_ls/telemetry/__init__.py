"""XP telemetry subsystem.

ARCHITECTURAL INVARIANT: XP is either in the aggregator, in flight, or in the
offline cache. It is never in two of these at once, and never silently lost:

- PulseSender drains the aggregator and delivers; a failed pulse goes to the cache
- CacheFlusher removes a cached pulse only after it was delivered
- The only network call is share.PulseClient.deliver() (a one-way POST)

Background loops talk to each other only through the debounce queue, the
shared stop event and the cache's transactions.
"""
from codestats_ls.telemetry.aggregator import XpAggregator
from codestats_ls.telemetry.cache import PulseCache
from codestats_ls.telemetry.debounce import PulseDebouncer
from codestats_ls.telemetry.flusher import CacheFlusher
from codestats_ls.telemetry.pulses import PulseSender
from codestats_ls.telemetry.share import PulseClient

__all__ = [
    "XpAggregator", "PulseCache", "PulseDebouncer",
    "CacheFlusher", "PulseSender", "PulseClient",
]
