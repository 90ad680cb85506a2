# barbershop/deps.py

from fastapi import Depends, HTTPException
from sqlmodel import Session

from .context import BookingContext
from .db import get_session
from .models import Appointment, Barber


def get_context(session: Session = Depends(get_session)) -> BookingContext:
    return BookingContext(session=session)


def require_owner(barber: Barber, appointment: Appointment):
    if appointment.barber_id != barber.id:
        raise HTTPException(status_code=403, detail="Forbidden")
