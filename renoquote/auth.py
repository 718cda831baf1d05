"""
Accounts and quote access.

Passwords are stored as bcrypt hashes (passlib). A login hands out a
short-lived HS256 access token (python-jose) whose subject is the user id.
Quotes belong to the homeowner or contractor who created them; an admin
account can open any quote.
"""

from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from . import models
from .config import settings
from .database import get_db

ROLES = ("homeowner", "contractor", "admin")
# Admin accounts are provisioned out of band, never through /auth/register
SELF_SERVICE_ROLES = ("homeowner", "contractor")

_passwords = CryptContext(schemes=["bcrypt"], deprecated="auto")
bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return _passwords.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return _passwords.verify(password, password_hash)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _signing_key() -> str:
    if not settings.JWT_SECRET:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="JWT_SECRET is not configured",
        )
    return settings.JWT_SECRET


# --- Tokens ---

def issue_token(user: models.User) -> dict:
    """Token body returned by register and login."""
    lifetime = timedelta(minutes=settings.JWT_ACCESS_EXPIRE_MINUTES)
    claims = {
        "sub": str(user.id),
        "role": user.role,
        "type": "access",
        "exp": datetime.utcnow() + lifetime,
    }
    return {
        "access_token": jwt.encode(claims, _signing_key(), algorithm=settings.JWT_ALGORITHM),
        "token_type": "bearer",
        "expires_in": int(lifetime.total_seconds()),
        "user_id": user.id,
    }


def user_from_token(token: Optional[str], db: Session) -> models.User:
    """The account a raw access token names. 401 when there is none."""
    if not token:
        raise _unauthorized("Authentication required")
    try:
        claims = jwt.decode(token, _signing_key(), algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise _unauthorized("Invalid or expired token")

    subject = str(claims.get("sub") or "")
    if claims.get("type") != "access" or not subject.isdigit():
        raise _unauthorized("Not an access token")

    user = db.query(models.User).filter(models.User.id == int(subject)).first()
    if user is None:
        raise _unauthorized("Account no longer exists")
    return user


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> models.User:
    return user_from_token(credentials.credentials if credentials else None, db)


# --- Quote access ---

def can_access_quote(user: models.User, quote: models.Quote) -> bool:
    return user.role == "admin" or quote.owner_id == user.id


def require_quote_access(user: models.User, quote: models.Quote) -> models.Quote:
    if not can_access_quote(user, quote):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not your quote")
    return quote
