# taskboard/client/cache.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional

from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from taskboard.client.api import TaskApiClient
from taskboard.client.models import TaskRecord, as_utc

logger = logging.getLogger(__name__)

STATUSES = ("pending", "in_progress", "completed")

Listener = Callable[[], None]

_datetime_adapter = TypeAdapter(Optional[datetime])


class ClientValidationError(ValueError):
    """Input rejected before any request is sent."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


def _check_due_date_in_future(value: Any, now: datetime) -> None:
    if value in (None, ""):
        return
    try:
        due = as_utc(_datetime_adapter.validate_python(value))
    except PydanticValidationError:
        raise ClientValidationError("due_date", "Please enter a valid date.")
    if due is not None and due <= now:
        raise ClientValidationError("due_date", "Due date must be in the future.")


class TaskCache:
    """
    서버 태스크 목록의 로컬 미러.
    성공 응답이 온 뒤에만 insert/replace/remove를 적용하고 전체 재조회는 하지 않는다.
    실패하면 캐시는 그대로 두고 예외를 올린다.
    """

    def __init__(self, api: TaskApiClient):
        self.api = api
        self._tasks: Dict[str, TaskRecord] = {}
        self._listeners: List[Listener] = []

    # ── 구독 ───────────────────────────────────────────
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _changed(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("task cache listener failed")

    # ── 조회 ───────────────────────────────────────────
    def __len__(self) -> int:
        return len(self._tasks)

    def get(self, task_id: str) -> Optional[TaskRecord]:
        return self._tasks.get(task_id)

    def tasks(self, status: Optional[str] = None) -> List[TaskRecord]:
        items = list(self._tasks.values())
        if status and status != "all":
            items = [t for t in items if t.status == status]
        return items

    def sorted_by_due_date(self, status: Optional[str] = None) -> List[TaskRecord]:
        # 마감일 없는 항목은 뒤로
        return sorted(
            self.tasks(status),
            key=lambda t: (t.due_date is None, t.due_date or datetime.min.replace(tzinfo=timezone.utc)),
        )

    def counts(self) -> Dict[str, int]:
        out = {s: 0 for s in STATUSES}
        for t in self._tasks.values():
            out[t.status] = out.get(t.status, 0) + 1
        return out

    # ── 서버 동기화 ─────────────────────────────────────
    async def refresh(self) -> List[TaskRecord]:
        tasks = await self.api.list_tasks()
        self._tasks = {t.id: t for t in tasks}
        self._changed()
        return tasks

    async def create(self, fields: Mapping[str, Any], *, now: Optional[datetime] = None) -> TaskRecord:
        _check_due_date_in_future(fields.get("due_date"), now or datetime.now(timezone.utc))
        task = await self.api.create_task(fields)
        self._tasks[task.id] = task
        self._changed()
        return task

    async def update(self, task_id: str, fields: Mapping[str, Any]) -> TaskRecord:
        task = await self.api.update_task(task_id, fields)
        self._tasks[task.id] = task
        self._changed()
        return task

    async def update_status(self, task_id: str, status: str) -> TaskRecord:
        task = await self.api.update_status(task_id, status)
        self._tasks[task.id] = task
        self._changed()
        return task

    async def delete(self, task_id: str) -> None:
        await self.api.delete_task(task_id)
        self._tasks.pop(task_id, None)
        self._changed()
