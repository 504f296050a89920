from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

import models
from config import Settings, get_settings
from database import get_db

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/login")

ACCESS = "access"
REFRESH = "refresh"
VERIFY = "verify"
RESET = "reset"


def _encode(data: dict, token_type: str, expires_delta: timedelta, settings: Settings) -> str:
    to_encode = data.copy()
    to_encode.update({"type": token_type, "exp": datetime.now(timezone.utc) + expires_delta})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def create_access_token(user: models.User, settings: Settings) -> str:
    return _encode({"id": user.id, "email": user.email}, ACCESS,
                   timedelta(minutes=settings.access_token_expire_minutes), settings)


def create_refresh_token(user: models.User, settings: Settings) -> str:
    return _encode({"id": user.id}, REFRESH, timedelta(days=settings.refresh_token_expire_days), settings)


def create_token_pair(user: models.User, settings: Settings) -> dict:
    return {
        "accessToken": create_access_token(user, settings),
        "refreshToken": create_refresh_token(user, settings),
    }


def create_verification_token(email: str, settings: Settings) -> str:
    return _encode({"email": email}, VERIFY, timedelta(hours=settings.verification_token_expire_hours), settings)


def create_reset_token(user: models.User, settings: Settings) -> str:
    return _encode({"id": user.id}, RESET, timedelta(minutes=settings.reset_token_expire_minutes), settings)


def decode_token(token: str, expected_type: str, settings: Settings) -> Optional[dict]:
    """Return the token payload, or None when it is invalid, expired or of another type."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
    if payload.get("type") != expected_type:
        return None
    return payload


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db),
                     settings: Settings = Depends(get_settings)) -> models.User:
    credentials_exception = HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                                          detail="Could not validate credentials",
                                          headers={"WWW-Authenticate": "Bearer"})

    payload = decode_token(token, ACCESS, settings)
    if payload is None or payload.get("id") is None:
        raise credentials_exception

    user = db.query(models.User).filter(models.User.id == payload["id"]).first()
    if user is None:
        raise credentials_exception
    return user
