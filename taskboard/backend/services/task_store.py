# taskboard/backend/services/task_store.py
from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from sqlmodel import Session, select

from taskboard.backend.models.task import Task


class TaskStore:
    """SQLModel-backed task persistence keyed by task id."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, task_id: UUID) -> Optional[Task]:
        return self.db.get(Task, task_id)

    def list_by_owner(self, owner_id: UUID, status: Optional[str] = None) -> List[Task]:
        stmt = select(Task).where(Task.owner_id == owner_id)
        if status is not None:
            stmt = stmt.where(Task.status == status)
        stmt = stmt.order_by(Task.created_at, Task.id)
        return list(self.db.exec(stmt).all())

    def save(self, task: Task) -> Task:
        self.db.add(task)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(task)
        return task

    def delete(self, task: Task) -> None:
        self.db.delete(task)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
