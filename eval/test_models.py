"""Tests for the Pulse data model."""
from datetime import datetime

from codestats_ls.models import Pulse, PulseXp, now_rfc3339


def test_to_dict_is_the_wire_format():
    pulse = Pulse(coded_at="2024-05-01T12:00:00.000000+02:00",
                  xps=[PulseXp("Rust", 3), PulseXp("Python", 7)])

    assert pulse.to_dict() == {
        "coded_at": "2024-05-01T12:00:00.000000+02:00",
        "xps": [{"language": "Rust", "xp": 3}, {"language": "Python", "xp": 7}],
    }


def test_from_dict_restores_an_equal_pulse():
    pulse = Pulse.from_counts({"Rust": 3, "Go": 1}, coded_at="2024-05-01T12:00:00+00:00")
    assert Pulse.from_dict(pulse.to_dict()) == pulse


def test_from_counts_stamps_current_time():
    pulse = Pulse.from_counts({"Rust": 3})
    assert datetime.fromisoformat(pulse.coded_at).tzinfo is not None
    assert pulse.counts() == {"Rust": 3}
    assert pulse.total_xp == 3


def test_now_rfc3339_has_offset_and_microseconds():
    stamp = now_rfc3339()
    parsed = datetime.fromisoformat(stamp)
    assert parsed.utcoffset() is not None
    # "YYYY-MM-DDTHH:MM:SS.ffffff+HH:MM"
    assert len(stamp) == 32
