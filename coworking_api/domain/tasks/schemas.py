from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_date_string

TASK_PRIORITIES = ("low", "medium", "high")
TASK_STATUSES = ("pending", "completed")


class TaskCreate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    priority: str = "medium"
    dueDate: Optional[str] = None

    @field_validator("priority")
    @classmethod
    def check_priority(cls, v):
        if v not in TASK_PRIORITIES:
            raise ValueError(f"priority must be one of {', '.join(TASK_PRIORITIES)}")
        return v

    @field_validator("dueDate")
    @classmethod
    def check_due_date(cls, v):
        return validate_date_string(v)


class TaskUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[str] = None
    status: Optional[str] = None
    dueDate: Optional[str] = None

    @field_validator("priority")
    @classmethod
    def check_priority(cls, v):
        if v is not None and v not in TASK_PRIORITIES:
            raise ValueError(f"priority must be one of {', '.join(TASK_PRIORITIES)}")
        return v

    @field_validator("status")
    @classmethod
    def check_status(cls, v):
        if v is not None and v not in TASK_STATUSES:
            raise ValueError(f"status must be one of {', '.join(TASK_STATUSES)}")
        return v

    @field_validator("dueDate")
    @classmethod
    def check_due_date(cls, v):
        return validate_date_string(v)

    def is_status_only(self) -> bool:
        return self.model_fields_set <= {"status"}


class TaskResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    priority: str
    status: str
    dueDate: Optional[str] = None
    createdBy: Optional[int] = None
    completedBy: Optional[int] = None
    completedAt: Optional[datetime] = None
    createdAt: Optional[datetime] = None

    @classmethod
    def from_task(cls, task) -> "TaskResponse":
        return cls(
            id=task.id,
            title=task.title,
            description=task.description,
            priority=task.priority,
            status=task.status,
            dueDate=task.due_date,
            createdBy=task.created_by,
            completedBy=task.completed_by,
            completedAt=task.completed_at,
            createdAt=task.created_at,
        )
