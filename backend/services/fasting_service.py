"""
Fasting Service — where the user is inside their daily eating window.

The eating window is [start, end) in local wall-clock time and may cross
midnight (e.g. 20:00–04:00).  Everything outside it is the fasting phase.
"""
import re
from dataclasses import dataclass
from datetime import datetime

MINUTES_PER_DAY = 24 * 60

TIME_RE = re.compile(r'^([01]?\d|2[0-3]):([0-5]\d)(?::[0-5]\d)?$')


@dataclass(frozen=True)
class FastingStatus:
    is_fasting: bool
    elapsed_minutes: int
    total_minutes: int

    @property
    def remaining_minutes(self) -> int:
        return max(0, self.total_minutes - self.elapsed_minutes)

    @property
    def progress(self) -> int:
        if not self.total_minutes:
            return 0
        return min(100, round(self.elapsed_minutes * 100 / self.total_minutes))


def parse_time(value: str) -> int:
    """'HH:MM' (or 'HH:MM:SS') → minutes past midnight."""
    m = TIME_RE.match(value.strip())
    if not m:
        raise ValueError(f"Invalid time of day: {value!r}")
    return int(m.group(1)) * 60 + int(m.group(2))


def fasting_status(window_start: str, window_end: str, now: datetime) -> FastingStatus:
    start = parse_time(window_start)
    end = parse_time(window_end)
    if start == end:
        raise ValueError("Eating window start and end must differ")

    current = now.hour * 60 + now.minute
    eating_length = (end - start) % MINUTES_PER_DAY

    # Minutes since the eating window opened, wrapped to one day
    since_start = (current - start) % MINUTES_PER_DAY
    if since_start < eating_length:
        return FastingStatus(False, since_start, eating_length)

    return FastingStatus(
        True,
        (current - end) % MINUTES_PER_DAY,
        MINUTES_PER_DAY - eating_length,
    )
