# taskboard/backend/routers/task.py
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from taskboard.backend.db.session import get_session
from taskboard.backend.dependencies.auth import get_current_user
from taskboard.backend.models.task import TaskStatus
from taskboard.backend.schemas.task import (
    MessageResponse,
    TaskCreate,
    TaskListResponse,
    TaskRead,
    TaskResponse,
    TaskStatusUpdate,
    TaskUpdate,
)
from taskboard.backend.services.task_events import task_events
from taskboard.backend.services.task_service import TaskService
from taskboard.backend.services.task_store import TaskStore

router = APIRouter(prefix="/tasks", tags=["Tasks"])


def get_task_service(db: Session = Depends(get_session)) -> TaskService:
    return TaskService(TaskStore(db), events=task_events)


def _list_response(tasks) -> TaskListResponse:
    return TaskListResponse(tasks=[TaskRead.model_validate(t) for t in tasks], count=len(tasks))


@router.get("", response_model=TaskListResponse)
def list_tasks(
    status_filter: Optional[TaskStatus] = Query(None, alias="status"),
    service: TaskService = Depends(get_task_service),
    user_id: UUID = Depends(get_current_user),
):
    tasks = service.list(user_id, status_filter.value if status_filter else None)
    return _list_response(tasks)


@router.get("/status/{task_status}", response_model=TaskListResponse)
def list_tasks_by_status(
    task_status: TaskStatus,
    service: TaskService = Depends(get_task_service),
    user_id: UUID = Depends(get_current_user),
):
    return _list_response(service.list(user_id, task_status.value))


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    payload: TaskCreate,
    service: TaskService = Depends(get_task_service),
    user_id: UUID = Depends(get_current_user),
):
    task = service.create(user_id, payload.model_dump(exclude_unset=True))
    return TaskResponse(message="Task created successfully", task=TaskRead.model_validate(task))


@router.get("/{task_id}", response_model=TaskResponse)
def get_task(
    task_id: UUID,
    service: TaskService = Depends(get_task_service),
    user_id: UUID = Depends(get_current_user),
):
    return TaskResponse(task=TaskRead.model_validate(service.get(user_id, task_id)))


@router.put("/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: UUID,
    payload: TaskUpdate,
    service: TaskService = Depends(get_task_service),
    user_id: UUID = Depends(get_current_user),
):
    # 요청에 실제로 포함된 키만 부분 업데이트
    task = service.update(user_id, task_id, payload.model_dump(exclude_unset=True))
    return TaskResponse(message="Task updated successfully", task=TaskRead.model_validate(task))


@router.patch("/{task_id}/status", response_model=TaskResponse)
def update_task_status(
    task_id: UUID,
    payload: TaskStatusUpdate,
    service: TaskService = Depends(get_task_service),
    user_id: UUID = Depends(get_current_user),
):
    task = service.update_status(user_id, task_id, payload.status)
    return TaskResponse(message="Task status updated successfully", task=TaskRead.model_validate(task))


@router.delete("/{task_id}", response_model=MessageResponse)
def delete_task(
    task_id: UUID,
    service: TaskService = Depends(get_task_service),
    user_id: UUID = Depends(get_current_user),
):
    service.delete(user_id, task_id)
    return MessageResponse(message="Task deleted successfully")
