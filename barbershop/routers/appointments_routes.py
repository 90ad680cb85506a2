# barbershop/routers/appointments_routes.py

import logging

from fastapi import APIRouter, Depends, HTTPException

from barbershop import lifecycle, queries
from barbershop.auth import get_current_barber
from barbershop.booking import ClientInfo, book, normalize_phone
from barbershop.context import BookingContext
from barbershop.db import storage_guard
from barbershop.deps import get_context, require_owner
from barbershop.models import AppointmentStatus, Barber, Client
from barbershop.schemas import AppointmentPublic, BookingRequest, CancelRequest, StatusUpdate

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/appointments",
    tags=["appointments"],
)


def _public(ctx: BookingContext, appt) -> dict:
    return queries.with_names(ctx.session, [appt])[0]


@router.post("", response_model=AppointmentPublic, status_code=201)
def create_appointment(
    request: BookingRequest,
    ctx: BookingContext = Depends(get_context),
):
    appt = book(
        ctx,
        ClientInfo(name=request.client.name, phone=request.client.phone),
        barber_id=request.barber_id,
        service_id=request.service_id,
        on_date=request.date,
        start_time=request.start_time,
        notes=request.notes,
    )
    return _public(ctx, appt)


@router.get("/{appointment_id}", response_model=AppointmentPublic)
def get_appointment(
    appointment_id: int,
    ctx: BookingContext = Depends(get_context),
    current_barber: Barber = Depends(get_current_barber),
):
    with storage_guard(ctx.session, "appointment lookup"):
        appt = lifecycle.get_appointment(ctx.session, appointment_id)
    require_owner(current_barber, appt)
    return _public(ctx, appt)


@router.patch("/{appointment_id}", response_model=AppointmentPublic)
def change_status(
    appointment_id: int,
    update: StatusUpdate,
    ctx: BookingContext = Depends(get_context),
    current_barber: Barber = Depends(get_current_barber),
):
    with storage_guard(ctx.session, "appointment lookup"):
        appt = lifecycle.get_appointment(ctx.session, appointment_id)
    require_owner(current_barber, appt)

    appt = lifecycle.transition(ctx, appointment_id, update.status)
    return _public(ctx, appt)


@router.post("/{appointment_id}/cancel", response_model=AppointmentPublic)
def client_cancel(
    appointment_id: int,
    request: CancelRequest,
    ctx: BookingContext = Depends(get_context),
):
    try:
        phone = normalize_phone(request.phone)
    except ValueError:
        raise HTTPException(status_code=422, detail="phone must contain digits")

    with storage_guard(ctx.session, "appointment lookup"):
        appt = lifecycle.get_appointment(ctx.session, appointment_id)
        client = ctx.session.get(Client, appt.client_id)

    # Only the client who booked can cancel from the public side
    if client is None or client.phone != phone:
        logger.warning("Cancel attempt with mismatched phone", extra={"appointment_id": appointment_id})
        raise HTTPException(status_code=403, detail="Forbidden")

    appt = lifecycle.transition(ctx, appointment_id, AppointmentStatus.cancelled)
    return _public(ctx, appt)
