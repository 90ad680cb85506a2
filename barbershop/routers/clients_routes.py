# barbershop/routers/clients_routes.py

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from barbershop import queries
from barbershop.booking import normalize_phone
from barbershop.context import BookingContext
from barbershop.deps import get_context
from barbershop.schemas import AppointmentPublic

router = APIRouter(
    prefix="/clients",
    tags=["clients"],
)


@router.get("/appointments", response_model=List[AppointmentPublic])
def my_appointments(
    phone: str,
    view: queries.View = queries.View.all,
    ctx: BookingContext = Depends(get_context),
):
    try:
        normalize_phone(phone)
    except ValueError:
        raise HTTPException(status_code=422, detail="phone must contain digits")

    appts = queries.client_appointments(ctx.session, phone, view=view, now=ctx.now)
    return queries.with_names(ctx.session, appts)
