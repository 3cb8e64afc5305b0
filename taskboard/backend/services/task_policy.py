# taskboard/backend/services/task_policy.py
from enum import Enum
from uuid import UUID

from taskboard.backend.models.task import Task


class TaskAction(str, Enum):
    VIEW = "view"
    UPDATE = "update"
    DELETE = "delete"


def permit(acting_user_id: UUID | str | None, task: Task, action: TaskAction) -> bool:
    """Owner-only access: every action is allowed iff the actor owns the task."""
    if acting_user_id is None or task is None:
        return False
    try:
        actor = acting_user_id if isinstance(acting_user_id, UUID) else UUID(str(acting_user_id))
    except ValueError:
        return False
    return task.owner_id == actor
