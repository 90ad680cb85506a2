# barbershop/routers/services_routes.py

from typing import List

from fastapi import APIRouter, Depends
from sqlmodel import Session, col, select

from barbershop.auth import get_current_barber
from barbershop.db import get_session, storage_guard
from barbershop.models import Barber, Service
from barbershop.schemas import ServiceCreate, ServicePublic

router = APIRouter(
    prefix="/services",
    tags=["services"],
)


@router.get("", response_model=List[ServicePublic])
def list_services(session: Session = Depends(get_session)):
    with storage_guard(session, "service listing"):
        return session.exec(
            select(Service).where(Service.active == True).order_by(col(Service.price))  # noqa: E712
        ).all()


@router.post("", status_code=201, response_model=ServicePublic)
def create_service(
    service: ServiceCreate,
    session: Session = Depends(get_session),
    current_barber: Barber = Depends(get_current_barber),
):
    db_service = Service(
        name=service.name,
        price=service.price,
        duration_minutes=service.duration_minutes,
    )
    with storage_guard(session, "service creation"):
        session.add(db_service)
        session.commit()
        session.refresh(db_service)
    return db_service
