# barbershop/routers/auth_routes.py

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordRequestForm
from sqlmodel import Session, select

from barbershop.auth import (
    create_access_token,
    decode_access_token,
    get_current_barber,
    get_token_claims,
    verify_password,
)
from barbershop.db import get_session, storage_guard
from barbershop.models import Barber
from barbershop.schemas import SessionInfo, Token

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
)


def _expiry(claims: dict) -> datetime:
    return datetime.fromtimestamp(claims["exp"], tz=timezone.utc)


@router.post("/login", response_model=Token)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    session: Session = Depends(get_session),
):
    # OAuth2 "password" flow uses the "username" field for the email
    email = form_data.username.strip().lower()
    password = form_data.password

    with storage_guard(session, "login"):
        barber = session.exec(
            select(Barber).where(Barber.email == email)
        ).first()

    if barber is None or not barber.active or not verify_password(password, barber.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    token = create_access_token({"sub": barber.email})
    return {
        "access_token": token,
        "token_type": "bearer",
        "expires_at": _expiry(decode_access_token(token)),
    }


@router.get("/session", response_model=SessionInfo)
def current_session(
    claims: dict = Depends(get_token_claims),
    barber: Barber = Depends(get_current_barber),
):
    return {"barber": barber, "expires_at": _expiry(claims)}
