# barber_series/routers/users_routes.py

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from barber_series.auth import get_current_user, hash_password
from barber_series.db import get_session
from barber_series.models import User
from barber_series.schemas import UserCreate, UserPublic

router = APIRouter(
    tags=["users"],
)


@router.get("/me", response_model=UserPublic)
def me(current_user: dict = Depends(get_current_user)):
    return current_user


@router.post("/users", status_code=201, response_model=UserPublic)
def create_user(
    user: UserCreate,
    session: Session = Depends(get_session),
):
    # 1) Check if email already exists
    existing = session.exec(
        select(User).where(User.email == user.email)
    ).first()
    if existing is not None:
        raise HTTPException(status_code=409, detail="Email already registered")

    # 2) Create user in DB
    db_user = User(
        email=user.email,
        password_hash=hash_password(user.password),
        role=user.role.value,
    )

    session.add(db_user)
    session.commit()
    session.refresh(db_user)  # fills db_user.id

    return {
        "id": db_user.id,
        "email": db_user.email,
        "role": db_user.role,
    }
