# barbershop/core.py
"""Time-slot model and the interval arithmetic shared by availability and booking."""

from dataclasses import dataclass
from datetime import datetime, date, time, timedelta
from typing import Iterable, Iterator, List, Tuple

Interval = Tuple[datetime, datetime]


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    # Half-open intervals: touching ends do not overlap
    return a_start < b_end and b_start < a_end


@dataclass(frozen=True)
class Slot:
    barber_id: int
    date: date
    start: time
    duration_minutes: int

    @property
    def starts_at(self) -> datetime:
        return datetime.combine(self.date, self.start)

    @property
    def ends_at(self) -> datetime:
        return self.starts_at + timedelta(minutes=self.duration_minutes)

    @property
    def end(self) -> time:
        return self.ends_at.time()

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return overlaps(self.starts_at, self.ends_at, start, end)


def subtract(window: Interval, busy: Iterable[Interval]) -> List[Interval]:
    """Return the parts of ``window`` not covered by any ``busy`` interval, in order."""
    free = []
    cursor, window_end = window
    for b_start, b_end in sorted(busy):
        if b_end <= cursor or b_start >= window_end:
            continue
        if b_start > cursor:
            free.append((cursor, b_start))
        cursor = max(cursor, b_end)
        if cursor >= window_end:
            break
    if cursor < window_end:
        free.append((cursor, window_end))
    return free


def on_grid(moment: datetime, anchor: datetime, step: timedelta) -> bool:
    return moment >= anchor and (moment - anchor) % step == timedelta(0)


def grid_starts(fragment: Interval, anchor: datetime, step: timedelta, duration: timedelta) -> Iterator[datetime]:
    """Yield grid-aligned starts inside ``fragment`` that leave room for ``duration``.

    The grid is anchored at ``anchor`` (the start of the working-hour window),
    so a fragment that begins off-grid starts at the next grid point.
    """
    start, end = fragment
    offset = (start - anchor) % step
    current = start if not offset else start + (step - offset)
    while current + duration <= end:
        yield current
        current += step
