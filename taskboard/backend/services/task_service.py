# taskboard/backend/services/task_service.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from taskboard.backend.core.errors import (
    ForbiddenError,
    NotFoundError,
    ValidationError,
    field_errors,
)
from taskboard.backend.models.task import Task, utcnow
from taskboard.backend.schemas.task import (
    TaskChangeEvent,
    TaskCreate,
    TaskStatusUpdate,
    TaskSummary,
    TaskUpdate,
)
from taskboard.backend.services.task_events import TaskEventBroker
from taskboard.backend.services.task_policy import TaskAction, permit
from taskboard.backend.services.task_store import TaskStore

logger = logging.getLogger(__name__)

EVENT_CREATED = "task.created"
EVENT_UPDATED = "task.updated"
EVENT_DELETED = "task.deleted"

_EVENT_MESSAGES = {
    EVENT_CREATED: "A new task was created successfully.",
    EVENT_UPDATED: "A task was updated.",
    EVENT_DELETED: "A task was deleted.",
}


def _validate(schema, fields: Optional[Mapping[str, Any]]):
    try:
        return schema.model_validate(dict(fields or {}))
    except PydanticValidationError as e:
        raise ValidationError(field_errors(e.errors()))


def _parse_id(task_id: UUID | str) -> UUID:
    if isinstance(task_id, UUID):
        return task_id
    try:
        return UUID(str(task_id))
    except ValueError:
        # 형식이 틀린 id는 존재하지 않는 것으로 취급
        raise NotFoundError()


class TaskService:
    def __init__(self, store: TaskStore, events: Optional[TaskEventBroker] = None):
        self.store = store
        self.events = events

    # ── 조회 ──────────────────────────────────────────
    def list(self, owner_id: UUID, status: Optional[str] = None) -> List[Task]:
        if status is not None:
            status = _validate(TaskStatusUpdate, {"status": status}).status
        return self.store.list_by_owner(owner_id, status)

    def get(self, acting_user_id: UUID, task_id: UUID | str) -> Task:
        return self._authorize(acting_user_id, task_id, TaskAction.VIEW)

    # ── 변경 ──────────────────────────────────────────
    def create(self, owner_id: UUID, fields: Mapping[str, Any]) -> Task:
        data = _validate(TaskCreate, fields)
        task = Task(
            owner_id=owner_id,
            title=data.title,
            description=data.description,
            status=data.status,
            due_date=data.due_date,
        )
        task = self.store.save(task)
        logger.info("task created | task=%s owner=%s", task.id, owner_id)
        self._emit(EVENT_CREATED, task)
        return task

    def update(self, acting_user_id: UUID, task_id: UUID | str, fields: Mapping[str, Any]) -> Task:
        task = self._authorize(acting_user_id, task_id, TaskAction.UPDATE)
        changes = _validate(TaskUpdate, fields).model_dump(exclude_unset=True)

        for key, value in changes.items():
            setattr(task, key, value)
        task.updated_at = utcnow()

        task = self.store.save(task)
        logger.info("task updated | task=%s fields=%s", task.id, sorted(changes))
        self._emit(EVENT_UPDATED, task)
        return task

    def update_status(self, acting_user_id: UUID, task_id: UUID | str, status: str) -> Task:
        task = self._authorize(acting_user_id, task_id, TaskAction.UPDATE)
        new_status = _validate(TaskStatusUpdate, {"status": status}).status

        task.status = new_status
        task.updated_at = utcnow()

        task = self.store.save(task)
        logger.info("task status changed | task=%s status=%s", task.id, new_status)
        self._emit(EVENT_UPDATED, task)
        return task

    def delete(self, acting_user_id: UUID, task_id: UUID | str) -> None:
        task = self._authorize(acting_user_id, task_id, TaskAction.DELETE)
        summary = TaskSummary.model_validate(task)
        owner_id = task.owner_id

        self.store.delete(task)
        logger.info("task deleted | task=%s", summary.id)
        self._emit(EVENT_DELETED, summary, owner_id=owner_id)

    # ── 내부 헬퍼 ─────────────────────────────────────
    def _authorize(self, acting_user_id: UUID, task_id: UUID | str, action: TaskAction) -> Task:
        task = self.store.get(_parse_id(task_id))
        if task is None:
            raise NotFoundError()
        if not permit(acting_user_id, task, action):
            # 존재 여부는 403으로 노출된다 (404로 숨기지 않음)
            raise ForbiddenError()
        return task

    def _emit(self, event: str, task: Task | TaskSummary, owner_id: Optional[UUID] = None) -> None:
        if self.events is None:
            return
        owner_id = owner_id or task.owner_id
        try:
            payload = TaskChangeEvent(
                event=event,
                task=task if isinstance(task, TaskSummary) else TaskSummary.model_validate(task),
                message=_EVENT_MESSAGES[event],
                timestamp=datetime.now(timezone.utc),
            ).model_dump(mode="json")
            self.events.publish(owner_id, payload)
        except Exception:
            logger.exception("task event publish failed | event=%s owner=%s", event, owner_id)
