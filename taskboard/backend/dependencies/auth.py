from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer

from taskboard.backend.core.errors import UnauthenticatedError
from taskboard.backend.core.jwt import user_id_from_token

# 토큰이 없을 때도 직접 401 포맷을 맞추기 위해 auto_error=False
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)


def _extract_jwt(request: Request, token: str | None) -> str | None:
    return token or request.cookies.get("access_token")


def get_current_user(request: Request, token: str | None = Depends(oauth2_scheme)) -> UUID:
    """Strict auth dependency; raises when no/invalid token."""
    jwt_token = _extract_jwt(request, token)
    if not jwt_token:
        raise UnauthenticatedError("Not authenticated")

    user_id = user_id_from_token(jwt_token)
    if user_id is None:
        raise UnauthenticatedError("Invalid authentication credentials")
    return user_id
