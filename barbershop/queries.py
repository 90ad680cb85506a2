# barbershop/queries.py
"""Read-only views over appointments."""

from dataclasses import dataclass, field
from datetime import datetime, date
from enum import Enum
from typing import Dict, List, Optional

from sqlalchemy import and_, or_
from sqlmodel import Session, col, select

from .booking import find_client
from .db import storage_guard
from .models import Appointment, AppointmentStatus, Barber, Client


class View(str, Enum):
    upcoming = "upcoming"
    history = "history"
    all = "all"


def list_appointments(
    session: Session,
    *,
    client_id: Optional[int] = None,
    barber_id: Optional[int] = None,
    on_date: Optional[date] = None,
    status: Optional[str] = None,
    view: View = View.all,
    now: Optional[datetime] = None,
) -> List[Appointment]:
    """Filtered appointments ordered by (date, start_time).

    ``upcoming`` keeps appointments starting at or after ``now`` in ascending
    order, ``history`` keeps earlier ones in descending order and ``all``
    returns everything ascending.
    """
    now = now or datetime.now()
    stmt = select(Appointment)

    if client_id is not None:
        stmt = stmt.where(Appointment.client_id == client_id)
    if barber_id is not None:
        stmt = stmt.where(Appointment.barber_id == barber_id)
    if on_date is not None:
        stmt = stmt.where(Appointment.date == on_date)
    if status is not None:
        stmt = stmt.where(Appointment.status == getattr(status, "value", status))

    today, clock = now.date(), now.time()
    if view == View.upcoming:
        stmt = stmt.where(
            or_(col(Appointment.date) > today, and_(col(Appointment.date) == today, col(Appointment.start_time) >= clock))
        )
    elif view == View.history:
        stmt = stmt.where(
            or_(col(Appointment.date) < today, and_(col(Appointment.date) == today, col(Appointment.start_time) < clock))
        )

    if view == View.history:
        stmt = stmt.order_by(col(Appointment.date).desc(), col(Appointment.start_time).desc())
    else:
        stmt = stmt.order_by(col(Appointment.date), col(Appointment.start_time))

    with storage_guard(session, "appointment listing"):
        return list(session.exec(stmt).all())


def client_appointments(session: Session, phone: str, view: View = View.all, now: Optional[datetime] = None) -> List[Appointment]:
    with storage_guard(session, "client lookup"):
        client = find_client(session, phone)
    if client is None:
        return []
    return list_appointments(session, client_id=client.id, view=view, now=now)


def barber_day(session: Session, barber_id: int, on_date: date) -> List[Appointment]:
    return list_appointments(session, barber_id=barber_id, on_date=on_date)


def with_names(session: Session, appointments: List[Appointment]) -> List[dict]:
    """Appointment rows joined with client and barber display names."""
    if not appointments:
        return []
    client_ids = {a.client_id for a in appointments}
    barber_ids = {a.barber_id for a in appointments}

    with storage_guard(session, "name lookup"):
        clients = {c.id: c for c in session.exec(select(Client).where(col(Client.id).in_(client_ids))).all()}
        barbers = {b.id: b for b in session.exec(select(Barber).where(col(Barber.id).in_(barber_ids))).all()}

    rows = []
    for a in appointments:
        row = a.model_dump()
        client = clients.get(a.client_id)
        barber = barbers.get(a.barber_id)
        row["client_name"] = client.name if client else None
        row["client_phone"] = client.phone if client else None
        row["barber_name"] = barber.name if barber else None
        rows.append(row)
    return rows


@dataclass
class BarberStats:
    total: int = 0
    by_status: Dict[str, int] = field(default_factory=lambda: {s.value: 0 for s in AppointmentStatus})
    revenue: float = 0.0
    unique_clients: int = 0
    average_duration_minutes: float = 0.0
    today: int = 0


def barber_stats(
    session: Session,
    barber_id: int,
    start: Optional[date] = None,
    end: Optional[date] = None,
    now: Optional[datetime] = None,
) -> BarberStats:
    """Panel figures for one barber between ``start`` and ``end`` inclusive.

    Revenue counts completed appointments at their booked price.
    """
    now = now or datetime.now()
    stmt = select(Appointment).where(Appointment.barber_id == barber_id)
    if start is not None:
        stmt = stmt.where(col(Appointment.date) >= start)
    if end is not None:
        stmt = stmt.where(col(Appointment.date) <= end)

    with storage_guard(session, "barber stats"):
        appointments = session.exec(stmt).all()

    stats = BarberStats(total=len(appointments))
    for a in appointments:
        stats.by_status[a.status] = stats.by_status.get(a.status, 0) + 1
        if a.status == AppointmentStatus.completed.value:
            stats.revenue += a.price
        if a.date == now.date():
            stats.today += 1

    live = [a for a in appointments if a.status != AppointmentStatus.cancelled.value]
    stats.unique_clients = len({a.client_id for a in live})
    if live:
        stats.average_duration_minutes = sum(a.duration_minutes for a in live) / len(live)
    return stats
