from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


def now_rfc3339() -> str:
    """Current local time as an RFC 3339 string with UTC offset.

    Microsecond precision keeps the string usable as a cache key: it sorts
    lexically within one UTC offset and never depends on the locale.
    """
    return datetime.now().astimezone().isoformat(timespec="microseconds")


@dataclass
class PulseXp:
    """XP gained in a single language."""
    language: str
    xp: int


@dataclass
class Pulse:
    """One unit of accumulated XP-by-language.

    coded_at doubles as the key of the pulse in the offline cache.
    """
    coded_at: str
    xps: list[PulseXp] = field(default_factory=list)

    @classmethod
    def from_counts(cls, counts: dict[str, int], coded_at: str | None = None) -> Pulse:
        return cls(
            coded_at=coded_at or now_rfc3339(),
            xps=[PulseXp(language=lang, xp=xp) for lang, xp in counts.items()],
        )

    @classmethod
    def from_dict(cls, data: dict) -> Pulse:
        """Inverse of to_dict(). Raises KeyError/TypeError/ValueError on bad input."""
        return cls(
            coded_at=str(data["coded_at"]),
            xps=[
                PulseXp(language=str(x["language"]), xp=int(x["xp"]))
                for x in data["xps"]
            ],
        )

    def to_dict(self) -> dict:
        """Wire and storage form: {"coded_at": ..., "xps": [{language, xp}]}."""
        return {
            "coded_at": self.coded_at,
            "xps": [{"language": x.language, "xp": x.xp} for x in self.xps],
        }

    @property
    def total_xp(self) -> int:
        return sum(x.xp for x in self.xps)

    def counts(self) -> dict[str, int]:
        out: dict[str, int] = {}
        for x in self.xps:
            out[x.language] = out.get(x.language, 0) + x.xp
        return out
