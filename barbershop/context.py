# barbershop/context.py

from dataclasses import dataclass, field
from datetime import datetime, date, timedelta

from sqlmodel import Session

from .config import settings


@dataclass
class BookingContext:
    """Everything a booking operation needs for one request.

    Built per request (see ``deps.get_context``); tests build it directly to
    pin ``now`` and the slot granularity.
    """

    session: Session
    now: datetime = field(default_factory=datetime.now)
    slot_minutes: int = settings.slot_minutes
    horizon_days: int = settings.booking_horizon_days
    lock_timeout: float = settings.lock_timeout_seconds

    @property
    def today(self) -> date:
        return self.now.date()

    @property
    def last_bookable_day(self) -> date:
        return self.today + timedelta(days=self.horizon_days)

    @property
    def slot_step(self) -> timedelta:
        return timedelta(minutes=self.slot_minutes)
