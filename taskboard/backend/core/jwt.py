# taskboard/backend/core/jwt.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Dict, Any
from uuid import UUID

from jose import jwt, JWTError

from taskboard.backend.core.config import settings


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def create_access_token(user_id: UUID | str, expires_delta: timedelta | None = None) -> str:
    """
    user_id로 JWT Access Token을 발급한다.
    """
    expire = _utcnow() + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "iat": int(_utcnow().timestamp()),
        "exp": int(expire.timestamp()),
        "typ": "access",
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def verify_access_token(token: str) -> Dict[str, Any]:
    """
    유효한 Access Token이면 payload(dict)를 반환,
    서명 불일치·만료·type 오류가 나면 JWTError를 던진다.
    """
    payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    if payload.get("typ") != "access":
        raise JWTError("Invalid token type")
    return payload


def decode_access_token(token: str):
    """실패 시 None을 반환하도록 감싼 래퍼."""
    try:
        return verify_access_token(token)
    except JWTError:
        return None


def user_id_from_token(token: str | None) -> UUID | None:
    if not token:
        return None
    payload = decode_access_token(token)
    if not payload or "sub" not in payload:
        return None
    try:
        return UUID(str(payload["sub"]))
    except ValueError:
        return None
