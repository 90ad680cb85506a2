# barbershop/auth.py

from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from passlib.context import CryptContext
from sqlmodel import Session, select

from .config import settings
from .db import get_session, storage_guard
from .models import Barber

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def create_access_token(data: dict, expires_hours: int = settings.session_hours, now: Optional[datetime] = None) -> str:
    issued_at = now or datetime.now(timezone.utc)
    to_encode = data.copy()
    to_encode["iat"] = issued_at
    to_encode["exp"] = issued_at + timedelta(hours=expires_hours)
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> dict:
    """Validate signature and expiry; raises ``JWTError`` otherwise."""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=401,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_token_claims(token: str = Depends(oauth2_scheme)) -> dict:
    try:
        payload = decode_access_token(token)
    except JWTError:
        raise _unauthorized("Invalid or expired token")
    if payload.get("sub") is None:
        raise _unauthorized("Invalid token")
    return payload


def get_current_barber(
    claims: dict = Depends(get_token_claims),
    session: Session = Depends(get_session),
) -> Barber:
    with storage_guard(session, "barber authentication"):
        barber = session.exec(
            select(Barber).where(Barber.email == claims["sub"])
        ).first()

    if barber is None or not barber.active:
        raise _unauthorized("Barber not found")

    return barber
