# barbershop/routers/barbers_routes.py

from dataclasses import asdict
from datetime import datetime, timedelta, date
from itertools import groupby
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, select

from barbershop import queries
from barbershop.auth import get_current_barber, hash_password
from barbershop.availability import find_free_slots, get_active_barber, live_appointments, working_windows
from barbershop.context import BookingContext
from barbershop.core import overlaps
from barbershop.db import get_session, storage_guard
from barbershop.deps import get_context
from barbershop.errors import NotFound
from barbershop.models import AppointmentStatus, Barber, BarberBlock as BarberBlockModel, Service, WorkingHours
from barbershop.schemas import (
    AppointmentPublic,
    AvailabilityResponse,
    BarberCreate,
    BarberPublic,
    BlockCreate,
    BlockKind,
    BlockPublic,
    StatsResponse,
    WorkingHoursUpdate,
    WorkingWindow,
)

router = APIRouter(
    prefix="/barbers",
    tags=["barbers"],
)

LUNCH_BREAK_MINUTES = 30


@router.post("", status_code=201, response_model=BarberPublic)
def create_barber(
    barber: BarberCreate,
    session: Session = Depends(get_session),
):
    email = barber.email.strip().lower()

    with storage_guard(session, "barber signup"):
        # 1) Check if email already exists
        existing = session.exec(
            select(Barber).where(Barber.email == email)
        ).first()
        if existing is not None:
            raise HTTPException(status_code=409, detail="Email already registered")

        # 2) Create barber in DB
        db_barber = Barber(
            email=email,
            password_hash=hash_password(barber.password),
            name=barber.name,
            specialty=barber.specialty,
            description=barber.description,
            photo_url=barber.photo_url,
        )
        session.add(db_barber)
        try:
            session.commit()
        except IntegrityError:
            # Registered concurrently with the same email
            session.rollback()
            raise HTTPException(status_code=409, detail="Email already registered")
        session.refresh(db_barber)  # fills db_barber.id
    return db_barber


@router.get("", response_model=List[BarberPublic])
def list_barbers(session: Session = Depends(get_session)):
    with storage_guard(session, "barber listing"):
        return session.exec(
            select(Barber).where(Barber.active == True).order_by(col(Barber.name))  # noqa: E712
        ).all()


@router.put("/me/working-hours", response_model=List[WorkingWindow])
def set_working_hours(
    payload: WorkingHoursUpdate,
    session: Session = Depends(get_session),
    current_barber: Barber = Depends(get_current_barber),
):
    windows = sorted(payload.windows, key=lambda w: (w.weekday, w.start))
    for window in windows:
        if not (0 <= window.weekday <= 6):
            raise HTTPException(status_code=422, detail="weekday must be an integer between 0 and 6")
        if window.start >= window.end:
            raise HTTPException(status_code=422, detail="start must be earlier than end")
    for _, day_windows in groupby(windows, key=lambda w: w.weekday):
        day_windows = list(day_windows)
        for earlier, later in zip(day_windows, day_windows[1:]):
            if later.start < earlier.end:
                raise HTTPException(status_code=422, detail="Working-hour windows on the same day cannot overlap")

    # Replace the whole weekly schedule
    with storage_guard(session, "working hours update"):
        session.exec(delete(WorkingHours).where(WorkingHours.barber_id == current_barber.id))
        for window in windows:
            session.add(
                WorkingHours(
                    barber_id=current_barber.id,
                    weekday=window.weekday,
                    start=window.start,
                    end=window.end,
                )
            )
        session.commit()

    return windows


@router.post("/me/blocks", status_code=201, response_model=BlockPublic)
def create_block(
    block: BlockCreate,
    session: Session = Depends(get_session),
    ctx: BookingContext = Depends(get_context),
    current_barber: Barber = Depends(get_current_barber),
):
    if block.date < ctx.today:
        raise HTTPException(status_code=422, detail="Cannot block a day in the past")

    with storage_guard(session, "working hours lookup"):
        windows = working_windows(session, current_barber.id, block.date)
    if not windows:
        raise HTTPException(status_code=422, detail="Not scheduled to work that day")

    if block.kind == BlockKind.day_off:
        block_start = datetime.combine(block.date, datetime.min.time())
        block_end = block_start + timedelta(days=1)
    else:
        if block.start_time is None:
            raise HTTPException(status_code=422, detail="start_time is required")
        block_start = datetime.combine(block.date, block.start_time)
        if block.end_time is not None:
            block_end = datetime.combine(block.date, block.end_time)
        elif block.kind == BlockKind.lunch_break:
            block_end = block_start + timedelta(minutes=LUNCH_BREAK_MINUTES)
        else:
            raise HTTPException(status_code=422, detail="end_time is required")
        if block_start >= block_end:
            raise HTTPException(status_code=422, detail="start_time must be earlier than end_time")
        if not any(w_start <= block_start and block_end <= w_end for w_start, w_end in windows):
            raise HTTPException(status_code=422, detail="Block must be within working hours")

    with storage_guard(session, "block creation"):
        existing_blocks = session.exec(
            select(BarberBlockModel)
            .where(BarberBlockModel.barber_id == current_barber.id)
            .where(BarberBlockModel.date == block.date)
        ).all()
        for existing_block in existing_blocks:
            if overlaps(block_start, block_end, existing_block.start, existing_block.end):
                raise HTTPException(status_code=409, detail="Block overlaps existing block")

        for appt in live_appointments(session, current_barber.id, block.date):
            if overlaps(block_start, block_end, appt.starts_at, appt.ends_at):
                raise HTTPException(status_code=409, detail="Block overlaps an existing appointment")

        db_block = BarberBlockModel(
            barber_id=current_barber.id,
            date=block.date,
            start=block_start,
            end=block_end,
            kind=block.kind.value,
        )
        session.add(db_block)
        session.commit()
        session.refresh(db_block)

    return db_block


@router.get("/me/blocks", response_model=List[BlockPublic])
def list_blocks(
    on_date: Optional[date] = None,
    session: Session = Depends(get_session),
    current_barber: Barber = Depends(get_current_barber),
):
    stmt = select(BarberBlockModel).where(BarberBlockModel.barber_id == current_barber.id)
    if on_date is not None:
        stmt = stmt.where(BarberBlockModel.date == on_date)
    with storage_guard(session, "block listing"):
        return session.exec(stmt.order_by(col(BarberBlockModel.start))).all()


@router.get("/me/appointments", response_model=List[AppointmentPublic])
def list_barber_appointments(
    on_date: Optional[date] = None,
    status: Optional[AppointmentStatus] = None,
    view: queries.View = queries.View.all,
    ctx: BookingContext = Depends(get_context),
    current_barber: Barber = Depends(get_current_barber),
):
    appts = queries.list_appointments(
        ctx.session,
        barber_id=current_barber.id,
        on_date=on_date,
        status=status,
        view=view,
        now=ctx.now,
    )
    return queries.with_names(ctx.session, appts)


@router.get("/me/stats", response_model=StatsResponse)
def barber_stats(
    start: Optional[date] = None,
    end: Optional[date] = None,
    ctx: BookingContext = Depends(get_context),
    current_barber: Barber = Depends(get_current_barber),
):
    if start is not None and end is not None and start > end:
        raise HTTPException(status_code=422, detail="start cannot be after end")
    stats = queries.barber_stats(ctx.session, current_barber.id, start=start, end=end, now=ctx.now)
    return {"barber_id": current_barber.id, **asdict(stats)}


@router.get("/{barber_id}", response_model=BarberPublic)
def get_barber(barber_id: int, session: Session = Depends(get_session)):
    with storage_guard(session, "barber lookup"):
        return get_active_barber(session, barber_id)


@router.get("/{barber_id}/working-hours", response_model=List[WorkingWindow])
def get_working_hours(barber_id: int, session: Session = Depends(get_session)):
    with storage_guard(session, "working hours lookup"):
        get_active_barber(session, barber_id)
        return session.exec(
            select(WorkingHours)
            .where(WorkingHours.barber_id == barber_id)
            .order_by(col(WorkingHours.weekday), col(WorkingHours.start))
        ).all()


@router.get("/{barber_id}/availability", response_model=AvailabilityResponse)
def barber_availability(
    barber_id: int,
    on_date: date,
    service_id: Optional[int] = None,
    ctx: BookingContext = Depends(get_context),
):
    duration_minutes = None
    if service_id is not None:
        with storage_guard(ctx.session, "service lookup"):
            service = ctx.session.get(Service, service_id)
        if service is None or not service.active:
            raise NotFound(f"Service {service_id} not found")
        duration_minutes = service.duration_minutes

    free = find_free_slots(ctx, barber_id, on_date, duration_minutes=duration_minutes)
    return {
        "barber_id": barber_id,
        "date": on_date,
        "slot_minutes": ctx.slot_minutes,
        "duration_minutes": free.duration_minutes,
        "slots": [{"start": slot.start, "end": slot.end} for slot in free],
    }
