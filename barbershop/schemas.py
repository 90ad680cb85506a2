# barbershop/schemas.py

from pydantic import BaseModel, Field, field_validator
from enum import Enum
from datetime import datetime, date, time
from typing import Dict, List, Optional

from .booking import normalize_phone
from .models import AppointmentStatus


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime


class BarberCreate(BaseModel):
    email: str
    password: str = Field(min_length=8, max_length=72)
    name: str = Field(min_length=1)
    specialty: Optional[str] = None
    description: Optional[str] = None
    photo_url: Optional[str] = None


class BarberPublic(BaseModel):
    id: int
    email: str
    name: str
    specialty: Optional[str] = None
    description: Optional[str] = None
    photo_url: Optional[str] = None
    active: bool


class SessionInfo(BaseModel):
    barber: BarberPublic
    expires_at: datetime


class ServiceCreate(BaseModel):
    name: str = Field(min_length=1)
    price: float = Field(ge=0)
    duration_minutes: int = Field(gt=0, le=480)


class ServicePublic(BaseModel):
    id: int
    name: str
    price: float
    duration_minutes: int
    active: bool


def naive_time(v: Optional[time]) -> Optional[time]:
    # Schedules are in shop-local time; offsets cannot be compared with it
    if v is not None and v.tzinfo is not None:
        raise ValueError("time must not carry a UTC offset")
    return v


class WorkingWindow(BaseModel):
    weekday: int     # 0=Mon, 1=Tues....
    start: time
    end: time

    @field_validator("start", "end")
    @classmethod
    def local_time(cls, v):
        return naive_time(v)


class WorkingHoursUpdate(BaseModel):
    windows: List[WorkingWindow]


class BlockKind(str, Enum):
    lunch_break = "lunch_break"
    break_ = "break"
    day_off = "day_off"


class BlockCreate(BaseModel):
    date: date
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    kind: BlockKind

    @field_validator("start_time", "end_time")
    @classmethod
    def local_time(cls, v):
        return naive_time(v)


class BlockPublic(BaseModel):
    id: int
    barber_id: int
    date: date
    start: datetime
    end: datetime
    kind: str


class SlotPublic(BaseModel):
    start: time
    end: time


class AvailabilityResponse(BaseModel):
    barber_id: int
    date: date
    slot_minutes: int
    duration_minutes: int
    slots: List[SlotPublic]


class ClientIn(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    phone: str = Field(min_length=6, max_length=32)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v

    @field_validator("phone")
    @classmethod
    def phone_has_digits(cls, v: str) -> str:
        normalize_phone(v)
        return v


class BookingRequest(BaseModel):
    client: ClientIn
    barber_id: int
    service_id: int
    date: date
    start_time: time
    notes: Optional[str] = Field(default=None, max_length=500)

    @field_validator("start_time")
    @classmethod
    def local_time(cls, v):
        return naive_time(v)


class StatusUpdate(BaseModel):
    status: AppointmentStatus


class CancelRequest(BaseModel):
    phone: str


class AppointmentPublic(BaseModel):
    id: int
    client_id: int
    barber_id: int
    service_id: int
    service_name: str
    price: float
    duration_minutes: int
    date: date
    start_time: time
    status: AppointmentStatus
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    client_name: Optional[str] = None
    client_phone: Optional[str] = None
    barber_name: Optional[str] = None


class StatsResponse(BaseModel):
    barber_id: int
    total: int
    by_status: Dict[str, int]
    revenue: float
    unique_clients: int
    average_duration_minutes: float
    today: int
