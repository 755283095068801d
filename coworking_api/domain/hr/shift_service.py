"""Shift service - Business logic for planned work slots"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import User
from ...models_hr import Shift
from ...utils.sanitization import sanitize_string
from .repository import EmployeeRepository, ShiftRepository
from .schemas import ShiftCreate, ShiftUpdate

logger = logging.getLogger(__name__)


class ShiftService:
    """Service layer for shift business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ShiftRepository()

    def _require_employee(self, employee_id: int):
        if not EmployeeRepository.get_employee_by_id(self.db, employee_id):
            raise HTTPException(status_code=404, detail="Employee not found")

    def list_shifts(
        self,
        employee_id: Optional[int] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        shift_type: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> list[Shift]:
        return self.repo.search_shifts(self.db, employee_id, start_date, end_date, shift_type, is_active)

    def get_shift(self, shift_id: int) -> Shift:
        shift = self.repo.get_shift_by_id(self.db, shift_id)
        if not shift:
            raise HTTPException(status_code=404, detail="Shift not found")
        return shift

    def create_shift(self, data: ShiftCreate, user: User) -> Shift:
        self._require_employee(data.employeeId)
        shift = self.repo.create_shift(
            self.db,
            employee_id=data.employeeId,
            date=data.date,
            start_time=data.startTime,
            end_time=data.endTime,
            shift_type=data.type,
            location=sanitize_string(data.location),
            notes=sanitize_string(data.notes),
        )
        logger.info(f"📅 Shift {shift.id} for employee {shift.employee_id} on {shift.date} created by {user.email}")
        return shift

    def update_shift(self, shift_id: int, data: ShiftUpdate) -> Shift:
        shift = self.get_shift(shift_id)

        updates = {}
        if data.employeeId is not None:
            self._require_employee(data.employeeId)
            updates["employee_id"] = data.employeeId
        if data.date is not None:
            updates["date"] = data.date
        if data.startTime is not None:
            updates["start_time"] = data.startTime
        if data.endTime is not None:
            updates["end_time"] = data.endTime
        if data.type is not None:
            updates["shift_type"] = data.type
        if data.location is not None:
            updates["location"] = sanitize_string(data.location)
        if data.notes is not None:
            updates["notes"] = sanitize_string(data.notes)
        if data.isActive is not None:
            updates["is_active"] = data.isActive

        if updates.get("start_time", shift.start_time) == updates.get("end_time", shift.end_time):
            raise HTTPException(status_code=400, detail="startTime and endTime must differ")

        return self.repo.update_shift(self.db, shift, **updates)

    def delete_shift(self, shift_id: int):
        shift = self.get_shift(shift_id)
        self.repo.delete_shift(self.db, shift)
        logger.info(f"🗑️ Shift {shift_id} deleted")
