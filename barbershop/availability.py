# barbershop/availability.py
"""Free-slot computation for a barber on a given day.

Free time is the barber's working-hour windows for the weekday minus every
live (non-cancelled) appointment and every blackout block of that day,
quantized onto a fixed grid anchored at the start of each window.
"""

import logging
from datetime import datetime, date, timedelta
from typing import Iterator, List, Optional

from sqlmodel import Session, col, select

from .context import BookingContext
from .core import Interval, Slot, grid_starts, on_grid, overlaps, subtract
from .db import storage_guard
from .errors import InvalidSlot, NotFound
from .models import Appointment, AppointmentStatus, Barber, BarberBlock, WorkingHours

logger = logging.getLogger(__name__)


class FreeSlots:
    """Finite, restartable sequence of free slots ordered by start time.

    State is read once when the sequence is built; iterating walks the free
    fragments lazily and can be repeated.
    """

    def __init__(
        self,
        barber_id: int,
        on_date: date,
        windows: List[Interval],
        busy: List[Interval],
        step: timedelta,
        duration: timedelta,
        not_before: datetime,
    ):
        self.barber_id = barber_id
        self.date = on_date
        self._windows = sorted(windows)
        self._busy = sorted(busy)
        self._step = step
        self._duration = duration
        self._not_before = not_before

    @property
    def duration_minutes(self) -> int:
        return int(self._duration.total_seconds() // 60)

    def __iter__(self) -> Iterator[Slot]:
        for window in self._windows:
            for fragment in subtract(window, self._busy):
                for start in grid_starts(fragment, window[0], self._step, self._duration):
                    if start < self._not_before:
                        continue
                    yield Slot(
                        barber_id=self.barber_id,
                        date=self.date,
                        start=start.time(),
                        duration_minutes=self.duration_minutes,
                    )

    def __repr__(self) -> str:
        return f"FreeSlots(barber_id={self.barber_id}, date={self.date}, duration={self.duration_minutes}m)"


def get_active_barber(session: Session, barber_id: int) -> Barber:
    barber = session.get(Barber, barber_id)
    if barber is None or not barber.active:
        raise NotFound(f"Barber {barber_id} not found")
    return barber


def working_windows(session: Session, barber_id: int, on_date: date) -> List[Interval]:
    rows = session.exec(
        select(WorkingHours)
        .where(WorkingHours.barber_id == barber_id)
        .where(WorkingHours.weekday == on_date.weekday())
        .order_by(col(WorkingHours.start))
    ).all()
    return [(datetime.combine(on_date, w.start), datetime.combine(on_date, w.end)) for w in rows]


def blocked_intervals(session: Session, barber_id: int, on_date: date) -> List[Interval]:
    blocks = session.exec(
        select(BarberBlock)
        .where(BarberBlock.barber_id == barber_id)
        .where(BarberBlock.date == on_date)
    ).all()
    return [(b.start, b.end) for b in blocks]


def live_appointments(session: Session, barber_id: int, on_date: date) -> List[Appointment]:
    return list(
        session.exec(
            select(Appointment)
            .where(Appointment.barber_id == barber_id)
            .where(Appointment.date == on_date)
            .where(Appointment.status != AppointmentStatus.cancelled.value)
        ).all()
    )


def check_date(ctx: BookingContext, on_date: date) -> None:
    if on_date < ctx.today:
        raise InvalidSlot(f"{on_date} is in the past")
    if on_date > ctx.last_bookable_day:
        raise InvalidSlot(f"Bookings open at most {ctx.horizon_days} days ahead")


def find_free_slots(
    ctx: BookingContext,
    barber_id: int,
    on_date: date,
    duration_minutes: Optional[int] = None,
) -> FreeSlots:
    """Free slots for ``barber_id`` on ``on_date``.

    ``duration_minutes`` is the length each slot must fit (the service
    duration); it defaults to the grid granularity.
    """
    check_date(ctx, on_date)
    duration = timedelta(minutes=duration_minutes or ctx.slot_minutes)

    with storage_guard(ctx.session, "availability lookup"):
        get_active_barber(ctx.session, barber_id)
        windows = working_windows(ctx.session, barber_id, on_date)
        busy = blocked_intervals(ctx.session, barber_id, on_date)
        busy += [(a.starts_at, a.ends_at) for a in live_appointments(ctx.session, barber_id, on_date)]

    logger.debug(
        "Computed availability inputs: %d windows, %d busy intervals",
        len(windows),
        len(busy),
        extra={"barber_id": barber_id},
    )
    return FreeSlots(
        barber_id=barber_id,
        on_date=on_date,
        windows=windows,
        busy=busy,
        step=ctx.slot_step,
        duration=duration,
        not_before=ctx.now,
    )


def check_bookable(ctx: BookingContext, barber_id: int, start_at: datetime, duration_minutes: int) -> None:
    """Raise ``InvalidSlot`` unless the interval sits on the grid inside one working window, clear of blocks."""
    if start_at < ctx.now:
        raise InvalidSlot(f"{start_at:%Y-%m-%d %H:%M} is in the past")
    check_date(ctx, start_at.date())

    end_at = start_at + timedelta(minutes=duration_minutes)
    windows = working_windows(ctx.session, barber_id, start_at.date())
    window = next((w for w in windows if w[0] <= start_at and end_at <= w[1]), None)
    if window is None:
        raise InvalidSlot("Appointment must be within the barber's working hours")
    if not on_grid(start_at, window[0], ctx.slot_step):
        raise InvalidSlot(f"Start time must be in {ctx.slot_minutes}-minute increments")

    for b_start, b_end in blocked_intervals(ctx.session, barber_id, start_at.date()):
        if overlaps(start_at, end_at, b_start, b_end):
            raise InvalidSlot("Appointment overlaps a block in the barber's schedule")
