# taskboard/client/models.py
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """tz가 없는 값은 UTC로 간주 (SQLite 백엔드는 tz를 떨어뜨린다)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class TaskRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    title: str
    description: Optional[str] = None
    status: str = "pending"
    due_date: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    @field_validator("due_date", "created_at", "updated_at")
    @classmethod
    def _utc(cls, v):
        return as_utc(v)


class NotificationKind(str, Enum):
    CREATED = "created"
    COMPLETED = "completed"
    DUE_SOON = "due_soon"
    OVERDUE = "overdue"


class Notification(BaseModel):
    id: str
    kind: NotificationKind
    message: str
    task_id: str
    read: bool = False
    created_at: datetime
