"""
Bearer credential issue/verify for the API.

Access tokens are short-lived HS256 JWTs whose subject is the user id. They
are accepted from the Authorization header or the access-token cookie.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Optional

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

import core.config as config
from core.errors import UnauthorizedError
from core.models import User, utcnow
from app.deps import get_db_session

bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(user_id: str, expires_in: Optional[int] = None) -> str:
    ttl = config.ACCESS_TOKEN_TTL_SECONDS if expires_in is None else expires_in
    payload = {
        "sub": user_id,
        "type": "access",
        "iat": utcnow(),
        "exp": utcnow() + timedelta(seconds=ttl),
    }
    return jwt.encode(payload, config.AUTH_SECRET, algorithm=config.AUTH_ALGORITHM)


def decode_access_token(token: str) -> str:
    """Return the user id carried by a valid access token."""
    try:
        payload = jwt.decode(token, config.AUTH_SECRET, algorithms=[config.AUTH_ALGORITHM])
    except jwt.ExpiredSignatureError as exc:
        raise UnauthorizedError("Access token expired") from exc
    except jwt.InvalidTokenError as exc:
        raise UnauthorizedError("Invalid access token") from exc
    subject = payload.get("sub")
    if not subject or payload.get("type") != "access":
        raise UnauthorizedError("Invalid access token")
    return subject


def _extract_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(config.ACCESS_TOKEN_COOKIE)


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db=Depends(get_db_session),
) -> User:
    token = _extract_token(request, credentials)
    if not token:
        raise UnauthorizedError("Unauthorized request")
    user = db.get(User, decode_access_token(token))
    if user is None:
        raise UnauthorizedError("Invalid access token")
    return user


def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db=Depends(get_db_session),
) -> Optional[User]:
    """Anonymous callers get None; a presented but invalid token is still rejected."""
    token = _extract_token(request, credentials)
    if not token:
        return None
    user = db.get(User, decode_access_token(token))
    if user is None:
        raise UnauthorizedError("Invalid access token")
    return user
