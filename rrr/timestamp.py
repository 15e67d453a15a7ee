"""Wall-clock timestamps pinned to a UTC offset captured at startup."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import reduce
from typing import Iterable


@dataclass(frozen=True)
class UtcOffset:
    delta: timedelta = timedelta(0)

    @classmethod
    def current_local_or_utc(cls) -> "UtcOffset":
        try:
            delta = datetime.now().astimezone().utcoffset()
        except (OSError, OverflowError, ValueError):
            delta = None
        return cls(delta or timedelta(0))

    @property
    def tzinfo(self) -> timezone:
        return timezone(self.delta)


UTC = UtcOffset()


@dataclass(frozen=True, order=True)
class Timestamp:
    value: datetime

    @classmethod
    def now_at_offset(cls, offset: UtcOffset) -> "Timestamp":
        return cls(datetime.now(offset.tzinfo))

    def rfc3339(self) -> str:
        text = self.value.isoformat(timespec="seconds")
        return text[:-6] + "Z" if text.endswith("+00:00") else text

    def __str__(self) -> str:
        text = self.rfc3339()
        if self.value.utcoffset() == timedelta(0):
            return f"{text} UTC"
        return text


Timestamp.DEFAULT = Timestamp(datetime(1970, 1, 1, tzinfo=timezone.utc))
Timestamp.MAX = Timestamp(datetime.max.replace(tzinfo=timezone.utc))


def earliest(timestamps: Iterable[Timestamp]) -> Timestamp:
    """Oldest of ``timestamps``, or ``Timestamp.MAX`` when there are none."""
    return reduce(lambda acc, stamp: stamp if acc > stamp else acc, timestamps, Timestamp.MAX)
