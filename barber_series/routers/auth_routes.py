# barber_series/routers/auth_routes.py

from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordRequestForm
from sqlmodel import Session, select

from barber_series.auth import create_access_token, verify_password
from barber_series.config import Settings, get_settings
from barber_series.db import get_session
from barber_series.models import User
from barber_series.schemas import Token

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
)


@router.post("/login", response_model=Token)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    # Swagger OAuth2 "password" flow uses the "username" field for the email
    user = session.exec(
        select(User).where(User.email == form_data.username)
    ).first()

    if user is None or not verify_password(form_data.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    token = create_access_token({"sub": user.email}, settings)
    return {"access_token": token, "token_type": "bearer"}
