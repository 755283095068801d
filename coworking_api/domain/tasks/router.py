"""Task router"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_optional_user, require_admin, require_staff
from ...database import get_db
from ...models import User
from .schemas import TaskCreate, TaskResponse, TaskUpdate
from .service import TaskService

router = APIRouter(prefix="/tasks", tags=["Tasks"])


def get_task_service(db: Session = Depends(get_db)) -> TaskService:
    return TaskService(db)


@router.get("", response_model=list[TaskResponse])
async def list_tasks(
    status: Optional[str] = Query(None),
    priority: Optional[str] = Query(None),
    _: User = Depends(require_staff),
    service: TaskService = Depends(get_task_service),
):
    return [TaskResponse.from_task(t) for t in service.list_tasks(status, priority)]


@router.post("", response_model=TaskResponse, status_code=201)
async def create_task(
    data: TaskCreate,
    user: User = Depends(require_admin),
    service: TaskService = Depends(get_task_service),
):
    return TaskResponse.from_task(service.create_task(data, user))


@router.patch("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: int,
    data: TaskUpdate,
    user: Optional[User] = Depends(get_optional_user),
    service: TaskService = Depends(get_task_service),
):
    return TaskResponse.from_task(service.update_task(task_id, data, user))


@router.delete("/{task_id}")
async def delete_task(
    task_id: int,
    _: User = Depends(require_admin),
    service: TaskService = Depends(get_task_service),
):
    service.delete_task(task_id)
    return {"message": "Task deleted"}
