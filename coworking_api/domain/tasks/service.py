"""Task service - Staff to-do list"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import case
from sqlalchemy.orm import Session

from ...auth import is_admin
from ...models import User
from ...models_hr import Task
from ...shared import clock
from ...utils.sanitization import sanitize_string
from .schemas import TaskCreate, TaskUpdate

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 100


def clean_title(title: Optional[str]) -> str:
    title = (title or "").strip()
    if not title:
        raise HTTPException(status_code=400, detail="Title is required")
    if len(title) > TITLE_MAX_LENGTH:
        raise HTTPException(status_code=400, detail=f"Title must be at most {TITLE_MAX_LENGTH} characters")
    return sanitize_string(title)


class TaskService:
    def __init__(self, db: Session):
        self.db = db

    def list_tasks(self, status: Optional[str] = None, priority: Optional[str] = None) -> list[Task]:
        query = self.db.query(Task)
        if status:
            query = query.filter(Task.status == status)
        if priority:
            query = query.filter(Task.priority == priority)
        priority_order = case((Task.priority == "high", 0), (Task.priority == "medium", 1), else_=2)
        return query.order_by(Task.status.desc(), priority_order, Task.created_at.desc()).all()

    def get_task(self, task_id: int) -> Task:
        task = self.db.query(Task).filter(Task.id == task_id).first()
        if not task:
            raise HTTPException(status_code=404, detail="Task not found")
        return task

    def create_task(self, data: TaskCreate, user: User) -> Task:
        task = Task(
            title=clean_title(data.title),
            description=sanitize_string(data.description),
            priority=data.priority,
            due_date=data.dueDate,
            status="pending",
            created_by=user.id,
        )
        self.db.add(task)
        self.db.commit()
        self.db.refresh(task)
        logger.info(f"📋 Task {task.id} created by {user.email}")
        return task

    def update_task(self, task_id: int, data: TaskUpdate, user: Optional[User]) -> Task:
        """Anyone may toggle the status; other fields need an admin"""
        task = self.get_task(task_id)
        if not data.is_status_only() and not is_admin(user):
            raise HTTPException(status_code=403, detail="Only admins can edit task details")

        if data.title is not None:
            task.title = clean_title(data.title)
        if data.description is not None:
            task.description = sanitize_string(data.description)
        if data.priority is not None:
            task.priority = data.priority
        if data.dueDate is not None:
            task.due_date = data.dueDate
        if data.status is not None and data.status != task.status:
            task.status = data.status
            if data.status == "completed":
                task.completed_at = clock.local_now()
                task.completed_by = user.id if user else None
            else:
                task.completed_at = None
                task.completed_by = None

        self.db.commit()
        self.db.refresh(task)
        return task

    def delete_task(self, task_id: int):
        task = self.get_task(task_id)
        self.db.delete(task)
        self.db.commit()
        logger.info(f"🗑️ Task {task_id} deleted")
