# barbershop/lifecycle.py
"""Appointment creation and status transitions.

    pending -> confirmed -> completed
    pending -> cancelled
    confirmed -> cancelled

``completed`` and ``cancelled`` are terminal; appointments are never deleted.
"""

import logging
import threading
from contextlib import contextmanager
from datetime import datetime, date, time, timedelta
from typing import Dict, Optional, Union

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .availability import check_bookable, get_active_barber, live_appointments
from .context import BookingContext
from .core import overlaps
from .db import storage_guard
from .errors import InvalidSlot, InvalidTransition, NotFound, SlotConflict, TooLateToCancel, Unavailable
from .models import Appointment, AppointmentStatus, Barber, Client, Service

logger = logging.getLogger(__name__)

S = AppointmentStatus

TRANSITIONS = {
    S.pending: frozenset({S.confirmed, S.cancelled}),
    S.confirmed: frozenset({S.completed, S.cancelled}),
    S.completed: frozenset(),
    S.cancelled: frozenset(),
}


def can_transition(current: Union[str, S], target: Union[str, S]) -> bool:
    try:
        return S(target) in TRANSITIONS[S(current)]
    except ValueError:
        return False


_locks: Dict[int, threading.Lock] = {}
_locks_guard = threading.Lock()


@contextmanager
def barber_lock(barber_id: int, timeout: float):
    """Serialize check-then-insert for one barber within this process."""
    with _locks_guard:
        lock = _locks.setdefault(barber_id, threading.Lock())
    if not lock.acquire(timeout=timeout):
        raise Unavailable(f"Timed out waiting for barber {barber_id}'s schedule")
    try:
        yield
    finally:
        lock.release()


def find_conflict(session: Session, barber_id: int, start_at: datetime, end_at: datetime) -> Optional[Appointment]:
    for appt in live_appointments(session, barber_id, start_at.date()):
        if overlaps(start_at, end_at, appt.starts_at, appt.ends_at):
            return appt
    return None


def get_appointment(session: Session, appointment_id: int) -> Appointment:
    appt = session.get(Appointment, appointment_id)
    if appt is None:
        raise NotFound(f"Appointment {appointment_id} not found")
    return appt


def create(
    ctx: BookingContext,
    client_id: int,
    barber_id: int,
    service_id: int,
    on_date: date,
    start_time: time,
    notes: Optional[str] = None,
) -> Appointment:
    """Create a ``pending`` appointment, or fail without writing anything."""
    session = ctx.session
    if start_time.tzinfo is not None:
        raise InvalidSlot("Start time must be local, without a UTC offset")
    start_at = datetime.combine(on_date, start_time)

    with storage_guard(session, "appointment creation"):
        if session.get(Client, client_id) is None:
            raise NotFound(f"Client {client_id} not found")
        get_active_barber(session, barber_id)
        service = session.get(Service, service_id)
        if service is None or not service.active:
            raise NotFound(f"Service {service_id} not found")

        end_at = start_at + timedelta(minutes=service.duration_minutes)
        check_bookable(ctx, barber_id, start_at, service.duration_minutes)

        with barber_lock(barber_id, ctx.lock_timeout):
            # Row lock on the barber for databases that support it (no-op on SQLite)
            session.exec(select(Barber).where(Barber.id == barber_id).with_for_update()).first()

            clash = find_conflict(session, barber_id, start_at, end_at)
            if clash is not None:
                session.rollback()
                logger.warning(
                    "Rejected overlapping booking at %s",
                    start_at,
                    extra={"barber_id": barber_id, "appointment_id": clash.id, "reason": "overlap"},
                )
                raise SlotConflict("Appointment overlaps an existing appointment")

            appt = Appointment(
                client_id=client_id,
                barber_id=barber_id,
                service_id=service.id,
                service_name=service.name,
                price=service.price,
                duration_minutes=service.duration_minutes,
                date=on_date,
                start_time=start_time,
                status=S.pending.value,
                notes=notes,
                created_at=ctx.now,
                updated_at=ctx.now,
            )
            session.add(appt)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                logger.warning(
                    "Rejected duplicate booking at %s",
                    start_at,
                    extra={"barber_id": barber_id, "reason": "unique index"},
                )
                raise SlotConflict("Appointment already exists for that start time")

        session.refresh(appt)

    logger.info(
        "Created appointment at %s",
        start_at,
        extra={"appointment_id": appt.id, "barber_id": barber_id, "client_id": client_id, "status": appt.status},
    )
    return appt


def transition(ctx: BookingContext, appointment_id: int, target: Union[str, S]) -> Appointment:
    """Move an appointment to ``target``; the row is left untouched on any failure."""
    session = ctx.session

    with storage_guard(session, "status change"):
        appt = get_appointment(session, appointment_id)
        current = appt.status
        if not can_transition(current, target):
            logger.warning(
                "Rejected transition to %s",
                target,
                extra={"appointment_id": appointment_id, "status": current, "reason": "invalid transition"},
            )
            raise InvalidTransition(current, str(getattr(target, "value", target)))
        target = S(target)

        if target is S.cancelled and appt.starts_at <= ctx.now:
            raise TooLateToCancel("Appointments can only be cancelled before they start")

        # Compare-and-set on the status read above
        result = session.exec(
            update(Appointment)
            .where(Appointment.id == appointment_id)
            .where(Appointment.status == current)
            .values(status=target.value, updated_at=ctx.now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            session.rollback()
            latest = get_appointment(session, appointment_id)
            raise InvalidTransition(latest.status, target.value)
        session.commit()
        session.refresh(appt)

    logger.info(
        "Appointment %s -> %s",
        current,
        target.value,
        extra={"appointment_id": appointment_id, "barber_id": appt.barber_id, "status": target.value},
    )
    return appt
