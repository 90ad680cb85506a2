# barbershop/main.py

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlmodel import Session

from .config import settings
from .data import seed_services
from .db import create_db_and_tables, engine
from .errors import BookingError, InvalidClient, InvalidSlot, InvalidTransition, NotFound, SlotConflict, TooLateToCancel, Unavailable
from .routers import appointments_routes, auth_routes, barbers_routes, clients_routes, services_routes

VERSION = "1.0.0"


class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in ("barber_id", "appointment_id", "client_id", "status", "reason"):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(asctime)s %(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)

logger = logging.getLogger(__name__)

STATUS_CODES = {
    InvalidSlot: 422,
    InvalidClient: 422,
    SlotConflict: 409,
    InvalidTransition: 409,
    TooLateToCancel: 409,
    NotFound: 404,
    Unavailable: 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    if settings.seed_demo_data:
        with Session(engine) as session:
            seed_services(session)
    logger.info("Barbershop API %s ready (frontend: %s)", VERSION, settings.frontend_url)
    yield


app = FastAPI(title="Barbershop Booking API", version=VERSION, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    status_code = next((code for cls, code in STATUS_CODES.items() if isinstance(exc, cls)), 400)
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "error": exc.code, "retryable": exc.retryable},
        headers={"Retry-After": "1"} if exc.retryable else None,
    )


api = APIRouter(prefix="/api")


@api.get("/health")
def health_check():
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": VERSION,
    }


api.include_router(auth_routes.router)
api.include_router(barbers_routes.router)
api.include_router(services_routes.router)
api.include_router(appointments_routes.router)
api.include_router(clients_routes.router)
app.include_router(api)
