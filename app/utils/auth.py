# app/utils/auth.py

import uuid
import jwt
from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy.orm import Session
from fastapi import Depends, Cookie
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.db.get_db import get_db
from app.models.user import User
from app.core.config import ACCESS_TOKEN_EXPIRE_MINUTES, ALGORITHM, SECRET_KEY
from app.core.errors import AuthenticationError, storage_errors
from app.core.policies import ANONYMOUS, Caller, resolve_caller
from app.utils.helpers import hash_password

security = HTTPBearer(auto_error=False)


def create_access_token(data: dict, expires_delta: timedelta = None) -> str:
    """
    Generate JWT token for an account
    Expect data to contain: {"user_id": <uuid>}
    """
    to_encode = data.copy()
    expire = datetime.utcnow() + (
        expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    token = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return token


def decode_access_token(token: str) -> uuid.UUID:
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token has expired")
    except jwt.InvalidTokenError:
        raise AuthenticationError("Invalid token")

    try:
        return uuid.UUID(str(payload.get("user_id")))
    except ValueError:
        raise AuthenticationError("Invalid token")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Compare plain password with SHA256 hashed password"""
    return hash_password(plain_password) == hashed_password


def _token_from_request(credentials, access_token) -> Optional[str]:
    # Priority: bearer header > cookie
    if credentials:
        return credentials.credentials
    return access_token


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    access_token: str = Cookie(None),
    db: Session = Depends(get_db)
) -> User:
    """Retrieve the authenticated account via JWT bearer token or cookie."""
    token = _token_from_request(credentials, access_token)
    if not token:
        raise AuthenticationError("Unauthorized")

    user_id = decode_access_token(token)
    with storage_errors(db):
        user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise AuthenticationError("Unauthorized")
    return user


def get_current_caller(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> Caller:
    return resolve_caller(db, user.id)


def get_optional_caller(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    access_token: str = Cookie(None),
    db: Session = Depends(get_db)
) -> Caller:
    """Like get_current_caller, but anonymous requests are allowed through."""
    token = _token_from_request(credentials, access_token)
    if not token:
        return ANONYMOUS

    user_id = decode_access_token(token)
    with storage_errors(db):
        known = db.query(User.id).filter(User.id == user_id).first()
    if not known:
        raise AuthenticationError("Unauthorized")
    return resolve_caller(db, user_id)
