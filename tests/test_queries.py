from datetime import datetime, time, timedelta

import pytest

from barbershop import lifecycle, queries
from barbershop.booking import ClientInfo, book
from barbershop.context import BookingContext
from barbershop.models import AppointmentStatus, WorkingHours

from .conftest import MONDAY, SUNDAY_NOON

S = AppointmentStatus
TUESDAY = MONDAY + timedelta(days=1)


@pytest.fixture
def booked(ctx, session, barber, haircut, full_service, client_info):
    session.add(WorkingHours(barber_id=barber.id, weekday=1, start=time(9, 0), end=time(12, 0)))
    session.commit()

    other = ClientInfo(name="Sofía", phone="11 4444 2020")
    appts = [
        book(ctx, client_info, barber.id, haircut.id, TUESDAY, time(9, 0)),
        book(ctx, client_info, barber.id, full_service.id, MONDAY, time(10, 0)),
        book(ctx, other, barber.id, haircut.id, MONDAY, time(9, 0)),
        book(ctx, client_info, barber.id, haircut.id, MONDAY, time(11, 30)),
    ]
    return appts


def key(appt):
    return (appt.date, appt.start_time)


def test_all_view_is_ascending(session, barber, booked):
    result = queries.list_appointments(session, barber_id=barber.id, now=SUNDAY_NOON)

    assert [key(a) for a in result] == sorted(key(a) for a in booked)


def test_upcoming_and_history_split_on_now(session, barber, booked):
    now = datetime(2030, 1, 7, 10, 30)

    upcoming = queries.list_appointments(session, barber_id=barber.id, view=queries.View.upcoming, now=now)
    history = queries.list_appointments(session, barber_id=barber.id, view=queries.View.history, now=now)

    assert [key(a) for a in upcoming] == [(MONDAY, time(11, 30)), (TUESDAY, time(9, 0))]
    assert [key(a) for a in history] == [(MONDAY, time(10, 0)), (MONDAY, time(9, 0))]


def test_filters_by_client_status_and_date(ctx, session, barber, booked):
    lifecycle.transition(ctx, booked[1].id, S.confirmed)
    mine = booked[0].client_id

    by_client = queries.list_appointments(session, client_id=mine)
    confirmed = queries.list_appointments(session, status=S.confirmed)
    day = queries.barber_day(session, barber.id, MONDAY)

    assert {a.id for a in by_client} == {booked[0].id, booked[1].id, booked[3].id}
    assert [a.id for a in confirmed] == [booked[1].id]
    assert [a.start_time for a in day] == [time(9, 0), time(10, 0), time(11, 30)]


def test_client_appointments_by_phone(session, booked):
    result = queries.client_appointments(session, "+54 9 11 5555 0101", view=queries.View.history, now=datetime(2030, 2, 1))

    assert [key(a) for a in result] == [(TUESDAY, time(9, 0)), (MONDAY, time(11, 30)), (MONDAY, time(10, 0))]
    assert queries.client_appointments(session, "999999") == []


def test_with_names(session, booked):
    rows = queries.with_names(session, booked[2:3])

    assert rows[0]["client_name"] == "Sofía"
    assert rows[0]["barber_name"] == "Ana"
    assert rows[0]["client_phone"] == "1144442020"


def test_barber_stats(session, barber, booked):
    done = BookingContext(session=session, now=datetime(2030, 1, 7, 11, 0), slot_minutes=30)
    before = BookingContext(session=session, now=SUNDAY_NOON, slot_minutes=30)
    lifecycle.transition(before, booked[1].id, S.confirmed)
    lifecycle.transition(done, booked[1].id, S.completed)
    lifecycle.transition(before, booked[0].id, S.cancelled)

    stats = queries.barber_stats(session, barber.id, now=datetime(2030, 1, 7, 12, 0))

    assert stats.total == 4
    assert stats.by_status == {"pending": 2, "confirmed": 0, "completed": 1, "cancelled": 1}
    assert stats.revenue == 40.0
    assert stats.unique_clients == 2
    assert stats.average_duration_minutes == pytest.approx((60 + 30 + 30) / 3)
    assert stats.today == 3


def test_barber_stats_date_range(session, barber, booked):
    stats = queries.barber_stats(session, barber.id, start=TUESDAY, end=TUESDAY)

    assert stats.total == 1
