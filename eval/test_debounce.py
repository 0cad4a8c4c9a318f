"""Tests for PulseDebouncer's rate limiting and loops."""
import threading

from codestats_ls.telemetry.debounce import PulseDebouncer

from conftest import wait_for


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


def _debouncer(emit=None, clock=None, **kwargs):
    calls = []
    debouncer = PulseDebouncer(
        emit or (lambda: calls.append(clock() if clock else None)),
        threading.Event(),
        clock=clock or FakeClock(),
        **kwargs,
    )
    return debouncer, calls


def test_signal_before_first_interval_is_dropped():
    clock = FakeClock()
    debouncer, calls = _debouncer(clock=clock, interval=10)

    clock.now = 9.9
    assert debouncer.handle_signal() is False
    assert calls == []


def test_signal_after_interval_emits_and_resets_clock():
    clock = FakeClock()
    debouncer, calls = _debouncer(clock=clock, interval=10)

    clock.now = 10
    assert debouncer.handle_signal() is True
    clock.now = 15
    assert debouncer.handle_signal() is False
    clock.now = 20
    assert debouncer.handle_signal() is True
    assert calls == [10, 20]


def test_burst_emits_at_most_once_per_interval():
    clock = FakeClock()
    debouncer, calls = _debouncer(clock=clock, interval=10)

    # One signal per second for 35 seconds.
    for second in range(1, 36):
        clock.now = second
        debouncer.handle_signal()

    assert calls == [10, 20, 30]
    assert all(b - a >= 10 for a, b in zip(calls, calls[1:]))
    assert debouncer.emit_count == 3


def test_full_queue_coalesces_signals():
    debouncer, _ = _debouncer(capacity=2)
    assert debouncer.notify() is True
    assert debouncer.notify() is True
    assert debouncer.notify() is False


def test_emit_errors_do_not_stop_the_gate(caplog):
    clock = FakeClock()

    def explode():
        raise RuntimeError("no network")

    debouncer, _ = _debouncer(emit=explode, clock=clock, interval=10)
    clock.now = 10
    assert debouncer.handle_signal() is True
    assert "Pulse emission failed" in caplog.text

    clock.now = 20
    assert debouncer.handle_signal() is True
    assert debouncer.emit_count == 2


def test_consumer_loop_emits_and_stops():
    emitted = threading.Event()
    stop = threading.Event()
    debouncer = PulseDebouncer(emitted.set, stop, interval=0)
    consumer = threading.Thread(target=debouncer.run)
    consumer.start()

    debouncer.notify()
    assert emitted.wait(5)

    stop.set()
    debouncer.wake()
    consumer.join(5)
    assert not consumer.is_alive()


def test_ticker_posts_signals_without_edits():
    emitted = threading.Event()
    stop = threading.Event()
    debouncer = PulseDebouncer(emitted.set, stop, interval=0, tick_interval=0.01)
    threads = [threading.Thread(target=debouncer.run),
               threading.Thread(target=debouncer.run_ticker)]
    for t in threads:
        t.start()

    assert emitted.wait(5)
    assert wait_for(lambda: debouncer.emit_count >= 2)

    stop.set()
    debouncer.wake()
    for t in threads:
        t.join(5)
        assert not t.is_alive()
