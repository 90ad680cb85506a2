# barbershop/booking.py

import logging
import re
from dataclasses import dataclass
from datetime import date, time
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from . import lifecycle
from .context import BookingContext
from .db import storage_guard
from .errors import InvalidClient
from .models import Appointment, Client

logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"\D")


def normalize_phone(raw: str) -> str:
    """Digits only, keeping a leading ``+`` for international numbers."""
    raw = raw.strip()
    digits = _NON_DIGITS.sub("", raw)
    if not digits:
        raise ValueError("phone must contain digits")
    return f"+{digits}" if raw.startswith("+") else digits


@dataclass
class ClientInfo:
    name: str
    phone: str


def find_client(session: Session, phone: str) -> Optional[Client]:
    return session.exec(select(Client).where(Client.phone == normalize_phone(phone))).first()


def resolve_client(ctx: BookingContext, info: ClientInfo) -> Client:
    """Return the client registered under ``info.phone``, creating it on first use."""
    session = ctx.session
    phone = normalize_phone(info.phone)
    name = info.name.strip()

    with storage_guard(session, "client lookup"):
        client = session.exec(select(Client).where(Client.phone == phone)).first()
        if client is None:
            if not name:
                raise InvalidClient("A name is required to register a new client")
            client = Client(phone=phone, name=name, created_at=ctx.now)
            session.add(client)
            try:
                session.commit()
            except IntegrityError:
                # Registered concurrently under the same phone
                session.rollback()
                client = session.exec(select(Client).where(Client.phone == phone)).one()
            else:
                logger.info("Registered new client", extra={"client_id": client.id})
        elif name and client.name != name:
            client.name = name
            session.add(client)
            session.commit()
        session.refresh(client)
    return client


def book(
    ctx: BookingContext,
    client_info: ClientInfo,
    barber_id: int,
    service_id: int,
    on_date: date,
    start_time: time,
    notes: Optional[str] = None,
) -> Appointment:
    """Register (or reuse) the client and create a pending appointment.

    Errors from ``lifecycle.create`` propagate unchanged; the client record is
    kept either way since registering it is idempotent.
    """
    client = resolve_client(ctx, client_info)
    return lifecycle.create(
        ctx,
        client_id=client.id,
        barber_id=barber_id,
        service_id=service_id,
        on_date=on_date,
        start_time=start_time,
        notes=notes,
    )
