"""
Auth endpoints: register, login, me.

Quotes are owned by the authenticated user; the rest of identity
management lives outside this service.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session
from typing import Optional

from .. import models
from ..auth import SELF_SERVICE_ROLES, get_current_user, hash_password, issue_token, verify_password
from ..database import get_db

router = APIRouter(prefix="/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    email: str
    password: str
    full_name: Optional[str] = None
    role: str = "homeowner"


class LoginRequest(BaseModel):
    email: str
    password: str


def _user_to_response(user: models.User) -> dict:
    """Never expose password_hash."""
    return {
        "id": user.id,
        "email": user.email,
        "full_name": user.full_name,
        "role": user.role,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


@router.post("/register")
def register(request: RegisterRequest, db: Session = Depends(get_db)):
    if request.role not in SELF_SERVICE_ROLES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"role must be one of {list(SELF_SERVICE_ROLES)}",
        )

    existing = db.query(models.User).filter(models.User.email == request.email).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Account with this email already exists",
        )

    user = models.User(
        email=request.email,
        password_hash=hash_password(request.password),
        full_name=request.full_name,
        role=request.role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return {**issue_token(user), "user": _user_to_response(user)}


@router.post("/login")
def login(request: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(models.User).filter(models.User.email == request.email).first()
    if not user or not verify_password(request.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    return {**issue_token(user), "user": _user_to_response(user)}


@router.get("/me")
def me(current_user: models.User = Depends(get_current_user)):
    return _user_to_response(current_user)
