"""HR domain schemas - employees, shifts and time entries"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...shared.validators import (
    validate_date_string,
    validate_email,
    validate_phone,
    validate_pin,
    validate_social_security_number,
    validate_time_string,
)

CONTRACT_TYPES = ("CDI", "CDD", "Stage")
EMPLOYEE_ROLES = ("Manager", "Assistant manager", "Employé polyvalent")
SHIFT_TYPES = ("morning", "afternoon", "evening", "custom")


# ============================================================================
# EMPLOYEES
# ============================================================================


class EmployeeDraft(BaseModel):
    """Employee fields; a draft may leave any of them empty"""

    firstName: Optional[str] = Field(default=None, min_length=2, max_length=50)
    lastName: Optional[str] = Field(default=None, min_length=2, max_length=50)
    email: Optional[str] = None
    phone: Optional[str] = None
    dateOfBirth: Optional[date] = None
    placeOfBirth: Optional[dict] = None
    address: Optional[dict] = None
    socialSecurityNumber: Optional[str] = None
    contractType: Optional[str] = None
    contractualHours: Optional[float] = Field(default=None, gt=0, le=48)
    hireDate: Optional[date] = None
    endDate: Optional[date] = None
    endContractReason: Optional[str] = Field(default=None, max_length=50)
    level: Optional[str] = Field(default=None, max_length=20)
    step: Optional[int] = Field(default=None, ge=0)
    hourlyRate: Optional[float] = Field(default=None, ge=0)
    monthlySalary: Optional[float] = Field(default=None, ge=0)
    iban: Optional[str] = Field(default=None, max_length=50)
    bic: Optional[str] = Field(default=None, max_length=20)
    employeeRole: Optional[str] = None
    availability: Optional[dict] = None
    pin: Optional[str] = None
    color: Optional[str] = Field(default=None, pattern=r"^#[0-9a-fA-F]{6}$")

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @field_validator("socialSecurityNumber")
    @classmethod
    def check_ssn(cls, v):
        return validate_social_security_number(v)

    @field_validator("pin")
    @classmethod
    def check_pin(cls, v):
        return validate_pin(v)

    @field_validator("contractType")
    @classmethod
    def check_contract_type(cls, v):
        if v is not None and v not in CONTRACT_TYPES:
            raise ValueError(f"contractType must be one of {', '.join(CONTRACT_TYPES)}")
        return v

    @field_validator("employeeRole")
    @classmethod
    def check_employee_role(cls, v):
        if v is not None and v not in EMPLOYEE_ROLES:
            raise ValueError(f"employeeRole must be one of {', '.join(EMPLOYEE_ROLES)}")
        return v

    @model_validator(mode="after")
    def check_contract_dates(self):
        if self.hireDate and self.endDate and self.endDate < self.hireDate:
            raise ValueError("endDate must be after hireDate")
        return self


class EmployeeCreate(EmployeeDraft):
    firstName: str = Field(min_length=2, max_length=50)
    lastName: str = Field(min_length=2, max_length=50)
    email: str
    contractType: str
    contractualHours: float = Field(gt=0, le=48)
    hireDate: date
    pin: str


class EmployeeUpdate(EmployeeDraft):
    isActive: Optional[bool] = None


class EmployeeResponse(BaseModel):
    id: int
    firstName: str
    lastName: str
    fullName: str
    email: Optional[str] = None
    phone: Optional[str] = None
    dateOfBirth: Optional[date] = None
    placeOfBirth: Optional[dict] = None
    address: Optional[dict] = None
    socialSecurityNumber: Optional[str] = None
    contractType: Optional[str] = None
    contractualHours: Optional[float] = None
    hireDate: Optional[date] = None
    endDate: Optional[date] = None
    endContractReason: Optional[str] = None
    level: Optional[str] = None
    step: Optional[int] = None
    hourlyRate: Optional[float] = None
    monthlySalary: Optional[float] = None
    employeeRole: str
    availability: Optional[dict] = None
    color: Optional[str] = None
    hasPin: bool
    isActive: bool
    isDraft: bool
    employmentStatus: str


# ============================================================================
# SHIFTS
# ============================================================================


class ShiftCreate(BaseModel):
    employeeId: int
    date: str
    startTime: str
    endTime: str
    type: str = "custom"
    location: Optional[str] = Field(default=None, max_length=255)
    notes: Optional[str] = Field(default=None, max_length=1000)

    @field_validator("date")
    @classmethod
    def check_date(cls, v):
        return validate_date_string(v)

    @field_validator("startTime", "endTime")
    @classmethod
    def check_time(cls, v):
        return validate_time_string(v)

    @field_validator("type")
    @classmethod
    def check_type(cls, v):
        if v not in SHIFT_TYPES:
            raise ValueError(f"type must be one of {', '.join(SHIFT_TYPES)}")
        return v

    @model_validator(mode="after")
    def check_range(self):
        if self.startTime == self.endTime:
            raise ValueError("startTime and endTime must differ")
        return self


class ShiftUpdate(BaseModel):
    employeeId: Optional[int] = None
    date: Optional[str] = None
    startTime: Optional[str] = None
    endTime: Optional[str] = None
    type: Optional[str] = None
    location: Optional[str] = Field(default=None, max_length=255)
    notes: Optional[str] = Field(default=None, max_length=1000)
    isActive: Optional[bool] = None

    @field_validator("date")
    @classmethod
    def check_date(cls, v):
        return validate_date_string(v)

    @field_validator("startTime", "endTime")
    @classmethod
    def check_time(cls, v):
        return validate_time_string(v)

    @field_validator("type")
    @classmethod
    def check_type(cls, v):
        if v is not None and v not in SHIFT_TYPES:
            raise ValueError(f"type must be one of {', '.join(SHIFT_TYPES)}")
        return v


class ShiftResponse(BaseModel):
    id: int
    employeeId: int
    employeeName: Optional[str] = None
    color: Optional[str] = None
    date: str
    startTime: str
    endTime: str
    type: str
    location: Optional[str] = None
    notes: Optional[str] = None
    isActive: bool

    @classmethod
    def from_shift(cls, shift) -> "ShiftResponse":
        return cls(
            id=shift.id,
            employeeId=shift.employee_id,
            employeeName=shift.employee.full_name if shift.employee else None,
            color=shift.employee.color if shift.employee else None,
            date=shift.date,
            startTime=shift.start_time,
            endTime=shift.end_time,
            type=shift.shift_type,
            location=shift.location,
            notes=shift.notes,
            isActive=shift.is_active,
        )


# ============================================================================
# TIME ENTRIES
# ============================================================================


class ClockInRequest(BaseModel):
    employeeId: int
    pin: str
    clockIn: Optional[str] = None
    justificationNote: Optional[str] = Field(default=None, max_length=1000)

    @field_validator("clockIn")
    @classmethod
    def check_time(cls, v):
        return validate_time_string(v)


class ClockOutRequest(BaseModel):
    employeeId: int
    pin: Optional[str] = None
    timeEntryId: Optional[int] = None
    clockOut: Optional[str] = None
    justificationNote: Optional[str] = Field(default=None, max_length=1000)

    @field_validator("clockOut")
    @classmethod
    def check_time(cls, v):
        return validate_time_string(v)


class TimeEntryUpdate(BaseModel):
    """Manual correction by an admin"""

    date: Optional[str] = None
    clockIn: Optional[str] = None
    clockOut: Optional[str] = None
    status: Optional[str] = None
    justificationNote: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("date")
    @classmethod
    def check_date(cls, v):
        return validate_date_string(v)

    @field_validator("clockIn", "clockOut")
    @classmethod
    def check_time(cls, v):
        return validate_time_string(v)

    @field_validator("status")
    @classmethod
    def check_status(cls, v):
        if v is not None and v not in ("active", "completed"):
            raise ValueError("status must be active or completed")
        return v


class TimeEntryResponse(BaseModel):
    id: int
    employeeId: int
    employeeName: Optional[str] = None
    date: str
    clockIn: str
    clockOut: Optional[str] = None
    shiftNumber: int
    totalHours: Optional[float] = None
    status: str
    hasError: bool
    errorType: Optional[str] = None
    errorMessage: Optional[str] = None
    isOutOfSchedule: bool
    justificationNote: Optional[str] = None
    justificationRead: bool

    @classmethod
    def from_entry(cls, entry) -> "TimeEntryResponse":
        return cls(
            id=entry.id,
            employeeId=entry.employee_id,
            employeeName=entry.employee.full_name if entry.employee else None,
            date=entry.date,
            clockIn=entry.clock_in,
            clockOut=entry.clock_out,
            shiftNumber=entry.shift_number,
            totalHours=entry.total_hours,
            status=entry.status,
            hasError=entry.has_error,
            errorType=entry.error_type,
            errorMessage=entry.error_message,
            isOutOfSchedule=entry.is_out_of_schedule,
            justificationNote=entry.justification_note,
            justificationRead=entry.justification_read,
        )
