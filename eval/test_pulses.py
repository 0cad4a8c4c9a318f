"""Tests for the live pulse path (drain -> deliver -> cache on failure)."""
from codestats_ls.errors import CacheError
from codestats_ls.telemetry.aggregator import XpAggregator
from codestats_ls.telemetry.cache import PulseCache
from codestats_ls.telemetry.pulses import PulseSender
from codestats_ls.telemetry.share import PulseClient

from conftest import UNREACHABLE_URL


class BrokenCache:
    def save(self, pulse):
        raise CacheError("disk full")


def _sender(url, cache):
    agg = XpAggregator()
    return agg, PulseSender(agg, PulseClient(url, "t"), cache)


def test_successful_pulse_is_not_cached(pulse_api, tmp_path):
    cache = PulseCache(str(tmp_path))
    agg, sender = _sender(pulse_api.url, cache)
    agg.record("Rust", 3)

    pulse = sender.send_pulse()

    assert pulse.counts() == {"Rust": 3}
    assert pulse_api.bodies[0]["xps"] == [{"language": "Rust", "xp": 3}]
    assert agg.snapshot() == {}
    assert cache.list() == []


def test_failed_pulse_goes_to_cache(pulse_api, tmp_path, caplog):
    pulse_api.status = 500
    cache = PulseCache(str(tmp_path))
    agg, sender = _sender(pulse_api.url, cache)
    agg.record("Rust", 3)

    pulse = sender.send_pulse()

    assert agg.snapshot() == {}
    assert cache.list() == [pulse]
    assert f"Error sending XP pulse from {pulse.coded_at}" in caplog.text


def test_nothing_to_send_makes_no_request(pulse_api, tmp_path):
    _, sender = _sender(pulse_api.url, PulseCache(str(tmp_path)))

    assert sender.send_pulse() is None
    assert pulse_api.requests == []


def test_cache_failure_drops_pulse_without_raising(caplog):
    agg, sender = _sender(UNREACHABLE_URL, BrokenCache())
    agg.record("Python", 5)

    pulse = sender.send_pulse()

    assert pulse is not None
    assert agg.snapshot() == {}
    assert "5 XP dropped" in caplog.text


def test_non_http_reply_sends_pulse_to_cache(garbage_api, tmp_path):
    cache = PulseCache(str(tmp_path))
    agg, sender = _sender(garbage_api.url, cache)
    agg.record("Rust", 3)

    pulse = sender.send_pulse()

    assert agg.snapshot() == {}
    assert [p.counts() for p in cache.list()] == [{"Rust": 3}]
    assert cache.list() == [pulse]
