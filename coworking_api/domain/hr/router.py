"""HR router - FastAPI endpoints for employees, shifts and time entries"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ...auth import require_admin, require_staff
from ...database import get_db
from ...models import User
from ...rate_limiter import clocking_rate_limiter, get_client_ip
from .clocking_service import ClockingService
from .employee_service import EmployeeService, employee_to_response
from .schemas import (
    ClockInRequest,
    ClockOutRequest,
    EmployeeCreate,
    EmployeeDraft,
    EmployeeResponse,
    EmployeeUpdate,
    ShiftCreate,
    ShiftResponse,
    ShiftUpdate,
    TimeEntryResponse,
    TimeEntryUpdate,
)
from .shift_service import ShiftService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/hr", tags=["HR"])
time_entries_router = APIRouter(prefix="/time-entries", tags=["Clocking"])


def get_employee_service(db: Session = Depends(get_db)) -> EmployeeService:
    """Dependency injection for EmployeeService"""
    return EmployeeService(db)


def get_shift_service(db: Session = Depends(get_db)) -> ShiftService:
    """Dependency injection for ShiftService"""
    return ShiftService(db)


def get_clocking_service(db: Session = Depends(get_db)) -> ClockingService:
    """Dependency injection for ClockingService"""
    return ClockingService(db)


# ============================================================================
# EMPLOYEES
# ============================================================================


@router.get("/employees", response_model=list[EmployeeResponse])
async def list_employees(
    include_inactive: bool = Query(False, alias="includeInactive"),
    _: User = Depends(require_staff),
    service: EmployeeService = Depends(get_employee_service),
):
    return [employee_to_response(e) for e in service.list_employees(include_inactive)]


@router.post("/employees", response_model=EmployeeResponse, status_code=201)
async def create_employee(
    data: EmployeeCreate,
    user: User = Depends(require_admin),
    service: EmployeeService = Depends(get_employee_service),
):
    return employee_to_response(service.create_employee(data, user))


@router.post("/employees/draft", response_model=EmployeeResponse, status_code=201)
async def create_employee_draft(
    data: EmployeeDraft,
    user: User = Depends(require_admin),
    service: EmployeeService = Depends(get_employee_service),
):
    """Save an incomplete employee record"""
    return employee_to_response(service.create_draft(data, user))


@router.post("/employees/{employee_id}/finalize", response_model=EmployeeResponse)
async def finalize_employee_draft(
    employee_id: int,
    user: User = Depends(require_admin),
    service: EmployeeService = Depends(get_employee_service),
):
    return employee_to_response(service.finalize_draft(employee_id, user))


@router.get("/employees/{employee_id}", response_model=EmployeeResponse)
async def get_employee(
    employee_id: int,
    _: User = Depends(require_staff),
    service: EmployeeService = Depends(get_employee_service),
):
    return employee_to_response(service.get_employee(employee_id))


@router.patch("/employees/{employee_id}", response_model=EmployeeResponse)
async def update_employee(
    employee_id: int,
    data: EmployeeUpdate,
    user: User = Depends(require_admin),
    service: EmployeeService = Depends(get_employee_service),
):
    return employee_to_response(service.update_employee(employee_id, data, user))


@router.delete("/employees/{employee_id}")
async def delete_employee(
    employee_id: int,
    user: User = Depends(require_admin),
    service: EmployeeService = Depends(get_employee_service),
):
    service.delete_employee(employee_id, user)
    return {"message": "Employee deactivated"}


# ============================================================================
# SHIFTS
# ============================================================================


@router.get("/shifts", response_model=list[ShiftResponse])
async def list_shifts(
    employee_id: Optional[int] = Query(None, alias="employeeId"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    shift_type: Optional[str] = Query(None, alias="type"),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    _: User = Depends(require_staff),
    service: ShiftService = Depends(get_shift_service),
):
    shifts = service.list_shifts(employee_id, start_date, end_date, shift_type, is_active)
    return [ShiftResponse.from_shift(s) for s in shifts]


@router.post("/shifts", response_model=ShiftResponse, status_code=201)
async def create_shift(
    data: ShiftCreate,
    user: User = Depends(require_admin),
    service: ShiftService = Depends(get_shift_service),
):
    return ShiftResponse.from_shift(service.create_shift(data, user))


@router.get("/shifts/{shift_id}", response_model=ShiftResponse)
async def get_shift(
    shift_id: int,
    _: User = Depends(require_staff),
    service: ShiftService = Depends(get_shift_service),
):
    return ShiftResponse.from_shift(service.get_shift(shift_id))


@router.patch("/shifts/{shift_id}", response_model=ShiftResponse)
async def update_shift(
    shift_id: int,
    data: ShiftUpdate,
    _: User = Depends(require_admin),
    service: ShiftService = Depends(get_shift_service),
):
    return ShiftResponse.from_shift(service.update_shift(shift_id, data))


@router.delete("/shifts/{shift_id}")
async def delete_shift(
    shift_id: int,
    _: User = Depends(require_admin),
    service: ShiftService = Depends(get_shift_service),
):
    service.delete_shift(shift_id)
    return {"message": "Shift deleted"}


# ============================================================================
# CLOCKING (public, PIN protected)
# ============================================================================


@time_entries_router.post("/clock-in", response_model=TimeEntryResponse, status_code=201)
async def clock_in(
    data: ClockInRequest,
    request: Request,
    _: None = Depends(clocking_rate_limiter),
    service: ClockingService = Depends(get_clocking_service),
):
    return TimeEntryResponse.from_entry(service.clock_in(data, get_client_ip(request)))


@time_entries_router.post("/clock-out", response_model=TimeEntryResponse)
async def clock_out(
    data: ClockOutRequest,
    request: Request,
    _: None = Depends(clocking_rate_limiter),
    service: ClockingService = Depends(get_clocking_service),
):
    return TimeEntryResponse.from_entry(service.clock_out(data, get_client_ip(request)))


# ============================================================================
# TIME ENTRIES ADMIN
# ============================================================================


@time_entries_router.get("/reports")
async def time_entry_reports(
    report_type: str = Query("daily", alias="type"),
    date: Optional[str] = Query(None),
    employee_id: Optional[int] = Query(None, alias="employeeId"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    _: User = Depends(require_staff),
    service: ClockingService = Depends(get_clocking_service),
):
    """Daily breakdown, per-employee stats or a cross-employee summary"""
    return service.report(report_type, date, employee_id, start_date, end_date)


@time_entries_router.get("", response_model=list[TimeEntryResponse])
async def list_time_entries(
    employee_id: Optional[int] = Query(None, alias="employeeId"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    status: Optional[str] = Query(None),
    has_error: Optional[bool] = Query(None, alias="hasError"),
    _: User = Depends(require_staff),
    service: ClockingService = Depends(get_clocking_service),
):
    entries = service.list_entries(employee_id, start_date, end_date, status, has_error)
    return [TimeEntryResponse.from_entry(e) for e in entries]


@time_entries_router.patch("/{entry_id}", response_model=TimeEntryResponse)
async def update_time_entry(
    entry_id: int,
    data: TimeEntryUpdate,
    _: User = Depends(require_admin),
    service: ClockingService = Depends(get_clocking_service),
):
    return TimeEntryResponse.from_entry(service.update_entry(entry_id, data))


@time_entries_router.delete("/{entry_id}")
async def delete_time_entry(
    entry_id: int,
    _: User = Depends(require_admin),
    service: ClockingService = Depends(get_clocking_service),
):
    service.delete_entry(entry_id)
    return {"message": "Time entry deleted"}


@time_entries_router.post("/{entry_id}/mark-justification-read", response_model=TimeEntryResponse)
async def mark_justification_read(
    entry_id: int,
    _: User = Depends(require_staff),
    service: ClockingService = Depends(get_clocking_service),
):
    return TimeEntryResponse.from_entry(service.mark_justification_read(entry_id))
