# barbershop/models.py

from enum import Enum
from typing import Optional
from datetime import datetime, date as Date, time, timedelta

from sqlalchemy import Column, DateTime, Index, text
from sqlmodel import SQLModel, Field


class AppointmentStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    completed = "completed"
    cancelled = "cancelled"


class Barber(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True)
    password_hash: str
    name: str
    specialty: Optional[str] = None
    description: Optional[str] = None
    photo_url: Optional[str] = None
    active: bool = True


class WorkingHours(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    barber_id: int = Field(foreign_key="barber.id", index=True)
    weekday: int  # 0=Mon ... 6=Sun
    start: time
    end: time


class BarberBlock(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    barber_id: int = Field(foreign_key="barber.id", index=True)
    date: Date = Field(index=True)
    # Plain DateTime: naive local times, like every scheduling value
    start: datetime = Field(sa_column=Column(DateTime, nullable=False))
    end: datetime = Field(sa_column=Column(DateTime, nullable=False))
    kind: str  # "lunch_break", "break" or "day_off"


class Service(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    price: float
    duration_minutes: int
    active: bool = True


class Client(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    phone: str = Field(index=True, unique=True)
    name: str
    created_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime, nullable=False))


class Appointment(SQLModel, table=True):
    __table_args__ = (
        # Backstop for the per-barber lock: one live appointment per start time.
        Index(
            "uq_barber_live_start",
            "barber_id",
            "date",
            "start_time",
            unique=True,
            sqlite_where=text("status != 'cancelled'"),
            postgresql_where=text("status != 'cancelled'"),
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    client_id: int = Field(foreign_key="client.id", index=True)
    barber_id: int = Field(foreign_key="barber.id", index=True)
    service_id: int = Field(foreign_key="service.id")

    # Snapshot of the service at booking time
    service_name: str
    price: float
    duration_minutes: int

    date: Date = Field(index=True)
    start_time: time
    status: str = Field(default=AppointmentStatus.pending.value, index=True)
    notes: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime, nullable=False))
    updated_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime, nullable=False))

    @property
    def starts_at(self) -> datetime:
        return datetime.combine(self.date, self.start_time)

    @property
    def ends_at(self) -> datetime:
        return self.starts_at + timedelta(minutes=self.duration_minutes)
