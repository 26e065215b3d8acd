# barber_series/auth.py

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from passlib.context import CryptContext
from sqlmodel import Session, select

from barber_series.config import Settings, get_settings
from barber_series.db import get_session
from barber_series.errors import ConfigurationError
from barber_series.models import User

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login")


def create_access_token(data: dict, settings: Settings, expires_minutes: Optional[int] = None) -> str:
    to_encode = data.copy()
    minutes = expires_minutes if expires_minutes is not None else settings.access_token_expire_minutes
    to_encode["exp"] = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    return jwt.encode(to_encode, settings.secret_key.get_secret_value(), algorithm=ALGORITHM)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def get_current_user(
    token: str = Depends(oauth2_scheme),
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> dict:
    credentials_error = HTTPException(
        status_code=401,
        detail="Invalid token",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.secret_key.get_secret_value(), algorithms=[ALGORITHM])
    except JWTError:
        raise credentials_error
    email = payload.get("sub")
    if email is None:
        raise credentials_error

    user = session.exec(
        select(User).where(User.email == email)
    ).first()

    if user is None:
        raise HTTPException(
            status_code=401,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return {
        "id": user.id,
        "email": user.email,
        "role": user.role,
    }


# -- shared secret for the scheduled triggers --------------------------------

def cron_secret_value(settings: Settings) -> str:
    if settings.cron_secret is None or not settings.cron_secret.get_secret_value():
        raise ConfigurationError("CRON_SECRET is not configured")
    return settings.cron_secret.get_secret_value()


def cron_secret_matches(
    settings: Settings,
    authorization: Optional[str],
    query_secret: Optional[str] = None,
) -> bool:
    """True when the bearer header (or, if passed, the query secret) carries the cron secret."""
    expected = cron_secret_value(settings)
    if authorization is not None and secrets.compare_digest(
        authorization.encode(), f"Bearer {expected}".encode()
    ):
        return True
    if query_secret is not None and secrets.compare_digest(query_secret.encode(), expected.encode()):
        return True
    return False
