# taskboard/backend/schemas/task.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from taskboard.backend.models.task import TITLE_MAX_LENGTH, TaskStatus


def _blank_to_none(v):
    if isinstance(v, str) and not v.strip():
        return None
    return v


def _to_utc(v: Optional[datetime]) -> Optional[datetime]:
    # tz 없는 입력은 UTC로 간주
    if v is None:
        return None
    if v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v.astimezone(timezone.utc)


def _check_title(v: Optional[str]) -> str:
    if v is None:
        raise ValueError("The title field is required.")
    v = v.strip()
    if not v:
        raise ValueError("The title field is required.")
    if len(v) > TITLE_MAX_LENGTH:
        raise ValueError(f"The title may not be greater than {TITLE_MAX_LENGTH} characters.")
    return v


class TaskCreate(BaseModel):
    # id/owner_id/created_at 등 알 수 없는 키는 무시
    model_config = ConfigDict(extra="ignore", use_enum_values=True, validate_default=True)

    title: str
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.PENDING
    due_date: Optional[datetime] = None

    @field_validator("title")
    @classmethod
    def _title(cls, v):
        return _check_title(v)

    @field_validator("status", mode="before")
    @classmethod
    def _status_default(cls, v):
        # null/빈 값은 기본값 pending
        return TaskStatus.PENDING if _blank_to_none(v) is None else v

    @field_validator("due_date", mode="before")
    @classmethod
    def _due_date_blank(cls, v):
        return _blank_to_none(v)

    @field_validator("due_date")
    @classmethod
    def _due_date_utc(cls, v):
        return _to_utc(v)


class TaskUpdate(BaseModel):
    """Partial update: only keys present in the payload are applied."""

    model_config = ConfigDict(extra="ignore", use_enum_values=True)

    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    due_date: Optional[datetime] = None

    @field_validator("title")
    @classmethod
    def _title(cls, v):
        return _check_title(v)

    @field_validator("status")
    @classmethod
    def _status_not_null(cls, v):
        if v is None:
            raise ValueError("The status field may not be null.")
        return v

    @field_validator("due_date", mode="before")
    @classmethod
    def _due_date_blank(cls, v):
        return _blank_to_none(v)

    @field_validator("due_date")
    @classmethod
    def _due_date_utc(cls, v):
        return _to_utc(v)


class TaskStatusUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    status: TaskStatus


class TaskRead(BaseModel):
    id: UUID
    owner_id: UUID
    title: str
    description: Optional[str]
    status: TaskStatus
    due_date: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("due_date", "created_at", "updated_at")
    @classmethod
    def _utc(cls, v):
        return _to_utc(v)


class TaskResponse(BaseModel):
    message: Optional[str] = None
    task: TaskRead


class TaskListResponse(BaseModel):
    tasks: List[TaskRead]
    count: int


class MessageResponse(BaseModel):
    message: str


class TaskSummary(BaseModel):
    """Public task fields carried by change events."""

    id: UUID
    title: str
    description: Optional[str]
    status: TaskStatus
    due_date: Optional[datetime]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("due_date", "created_at")
    @classmethod
    def _utc(cls, v):
        return _to_utc(v)


class TaskChangeEvent(BaseModel):
    event: str
    task: TaskSummary
    message: str
    timestamp: datetime
