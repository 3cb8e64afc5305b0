# taskboard/backend/core/errors.py
from __future__ import annotations

from typing import Dict, List, Optional


class TaskboardError(Exception):
    """Base class for errors recovered at the request boundary."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(TaskboardError):
    """Bad or missing input. Carries field-level messages."""

    status_code = 422
    default_message = "The given data was invalid."

    def __init__(self, errors: Dict[str, List[str]], message: Optional[str] = None):
        self.errors = errors
        super().__init__(message)

    @classmethod
    def for_field(cls, field: str, msg: str) -> "ValidationError":
        return cls({field: [msg]})


class ForbiddenError(TaskboardError):
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(TaskboardError):
    status_code = 404
    default_message = "Task not found"


class UnauthenticatedError(TaskboardError):
    status_code = 401
    default_message = "Not authenticated"


_LOCATION_PREFIXES = ("body", "query", "path", "header", "cookie")


def field_errors(raw_errors) -> Dict[str, List[str]]:
    """pydantic/FastAPI error list → {"field": ["message", ...]}"""
    out: Dict[str, List[str]] = {}
    for err in raw_errors:
        loc = [str(p) for p in err.get("loc", ())]
        if len(loc) > 1 and loc[0] in _LOCATION_PREFIXES:
            loc = loc[1:]
        key = ".".join(loc) or "__root__"
        msg = err.get("msg", "invalid")
        # pydantic이 ValueError 메시지 앞에 붙이는 접두어 제거
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        out.setdefault(key, []).append(msg)
    return out
