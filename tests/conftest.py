from datetime import date, datetime, time, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from barbershop.booking import ClientInfo
from barbershop.context import BookingContext
from barbershop.db import create_db_and_tables, get_session, make_engine
from barbershop.main import app
from barbershop.models import Barber, Service, WorkingHours

MONDAY = date(2030, 1, 7)
SUNDAY_NOON = datetime(2030, 1, 6, 12, 0)


@pytest.fixture
def engine():
    engine = make_engine("sqlite://")
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def ctx(session):
    return BookingContext(session=session, now=SUNDAY_NOON, slot_minutes=30, horizon_days=30, lock_timeout=1.0)


@pytest.fixture
def barber(session):
    barber = Barber(email="ana@example.com", password_hash="not-used", name="Ana")
    session.add(barber)
    session.commit()
    session.refresh(barber)
    session.add(WorkingHours(barber_id=barber.id, weekday=0, start=time(9, 0), end=time(12, 0)))
    session.commit()
    return barber


@pytest.fixture
def haircut(session):
    service = Service(name="Haircut", price=18.0, duration_minutes=30)
    session.add(service)
    session.commit()
    session.refresh(service)
    return service


@pytest.fixture
def full_service(session):
    service = Service(name="Cut and color", price=40.0, duration_minutes=60)
    session.add(service)
    session.commit()
    session.refresh(service)
    return service


@pytest.fixture
def client_info():
    return ClientInfo(name="Luis", phone="+54 9 11 5555-0101")


def next_weekday(weekday: int, start: date = None) -> date:
    """The next ``weekday`` strictly after ``start`` (today by default)."""
    start = start or date.today()
    days = (weekday - start.weekday()) % 7 or 7
    return start + timedelta(days=days)


@pytest.fixture
def api(engine):
    def override_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def barber_token(api):
    response = api.post(
        "/api/barbers",
        json={"email": "Marco@Example.com", "password": "s3cret-pass", "name": "Marco"},
    )
    assert response.status_code == 201
    response = api.post("/api/auth/login", data={"username": "marco@example.com", "password": "s3cret-pass"})
    assert response.status_code == 200
    return response.json()["access_token"]


@pytest.fixture
def auth_headers(barber_token):
    return {"Authorization": f"Bearer {barber_token}"}
