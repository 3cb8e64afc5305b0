# taskboard/backend/routers/auth.py
from __future__ import annotations

import hmac
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel
from sqlmodel import Session, select

from taskboard.backend.core.config import settings
from taskboard.backend.core.errors import UnauthenticatedError
from taskboard.backend.core.jwt import create_access_token
from taskboard.backend.db.session import get_session
from taskboard.backend.dependencies.auth import get_current_user
from taskboard.backend.models.task import utcnow
from taskboard.backend.models.user import User

logger = logging.getLogger(__name__)
auth_router = APIRouter(prefix="/auth", tags=["auth"])


class AuthTokenModel(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: dict


def _get_or_create_user(db: Session, *, email: str) -> User:
    user = db.exec(select(User).where(User.email == email)).first()
    if not user:
        user = User(name=email.split("@", 1)[0] or "User", email=email)
    user.last_login_at = utcnow()
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


# ──────────────────────────────────────────────────────────────────────────────
# (개발용) Swagger 테스트용 비밀번호 로그인
# 실제 인증은 외부 IdP가 발급한 bearer 토큰을 그대로 사용한다.
# ──────────────────────────────────────────────────────────────────────────────
@auth_router.post("/token", response_model=AuthTokenModel)
def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_session),
):
    if not settings.dev_login_password:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")

    if not hmac.compare_digest(
        form_data.password.encode("utf-8"), settings.dev_login_password.encode("utf-8")
    ):
        raise UnauthenticatedError("Invalid username or password")

    user = _get_or_create_user(db, email=form_data.username.strip().lower())
    logger.info("dev login | user=%s", user.user_id)
    return AuthTokenModel(
        access_token=create_access_token(user.user_id),
        expires_in=60 * settings.access_token_expire_minutes,
        user={"user_id": str(user.user_id), "name": user.name, "email": user.email},
    )


@auth_router.get("/me")
def get_me(user_id: UUID = Depends(get_current_user)):
    return {"user_id": str(user_id)}
