"""Employee service - Business logic for staff records, drafts and payroll fields"""

import logging
from datetime import date
from typing import Optional

from fastapi import HTTPException
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from ...models import User
from ...models_hr import Employee
from ...shared import clock
from ...utils.sanitization import sanitize_dict, sanitize_string
from .repository import EmployeeRepository
from .schemas import EmployeeCreate, EmployeeDraft, EmployeeResponse, EmployeeUpdate

logger = logging.getLogger(__name__)

WEEKS_PER_MONTH = 52 / 12

# schema field -> model column, for fields copied as-is
DIRECT_FIELDS = {
    "email": "email",
    "phone": "phone",
    "dateOfBirth": "date_of_birth",
    "socialSecurityNumber": "social_security_number",
    "contractType": "contract_type",
    "contractualHours": "contractual_hours",
    "hireDate": "hire_date",
    "endDate": "end_date",
    "level": "level",
    "step": "step",
    "hourlyRate": "hourly_rate",
    "iban": "iban",
    "bic": "bic",
    "employeeRole": "employee_role",
    "availability": "availability",
    "color": "color",
}


pin_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_pin(pin: str) -> str:
    """Hash a clocking PIN using bcrypt"""
    return pin_context.hash(pin)


def verify_pin(employee: Employee, pin: str) -> bool:
    """Verify a clocking PIN against the stored hash"""
    if not employee.clocking_pin_hash:
        return False
    try:
        return pin_context.verify(pin, employee.clocking_pin_hash)
    except ValueError as e:
        logger.error(f"❌ Unreadable PIN hash for employee {employee.id}: {e}")
        return False


def compute_monthly_salary(hourly_rate: Optional[float], contractual_hours: Optional[float]) -> Optional[float]:
    """Weekly hours spread over an average month"""
    if hourly_rate is None or contractual_hours is None:
        return None
    return round(hourly_rate * contractual_hours * WEEKS_PER_MONTH, 2)


def employment_status(employee: Employee, today: Optional[date] = None) -> str:
    today = today or clock.local_today()
    if employee.is_draft:
        return "draft"
    if not employee.is_active or (employee.end_date and employee.end_date < today):
        return "inactive"
    if employee.hire_date and employee.hire_date > today:
        return "waiting"
    return "active"


def employee_to_response(employee: Employee) -> EmployeeResponse:
    return EmployeeResponse(
        id=employee.id,
        firstName=employee.first_name,
        lastName=employee.last_name,
        fullName=employee.full_name,
        email=employee.email,
        phone=employee.phone,
        dateOfBirth=employee.date_of_birth,
        placeOfBirth=employee.place_of_birth,
        address=employee.address,
        socialSecurityNumber=employee.social_security_number,
        contractType=employee.contract_type,
        contractualHours=employee.contractual_hours,
        hireDate=employee.hire_date,
        endDate=employee.end_date,
        endContractReason=employee.end_contract_reason,
        level=employee.level,
        step=employee.step,
        hourlyRate=employee.hourly_rate,
        monthlySalary=employee.monthly_salary,
        employeeRole=employee.employee_role,
        availability=employee.availability,
        color=employee.color,
        hasPin=bool(employee.clocking_pin_hash),
        isActive=employee.is_active,
        isDraft=employee.is_draft,
        employmentStatus=employment_status(employee),
    )


class EmployeeService:
    """Service layer for employee business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = EmployeeRepository()

    def _fields_from(self, data: EmployeeDraft) -> dict:
        """Column values for every field set on the payload"""
        provided = data.model_fields_set
        fields = {}
        for attr, column in DIRECT_FIELDS.items():
            if attr in provided:
                fields[column] = getattr(data, attr)
        if fields.get("employee_role", "") is None:
            del fields["employee_role"]
        if "firstName" in provided:
            fields["first_name"] = sanitize_string(data.firstName)
        if "lastName" in provided:
            fields["last_name"] = sanitize_string(data.lastName)
        if "placeOfBirth" in provided:
            fields["place_of_birth"] = sanitize_dict(data.placeOfBirth)
        if "address" in provided:
            fields["address"] = sanitize_dict(data.address)
        if "endContractReason" in provided:
            fields["end_contract_reason"] = sanitize_string(data.endContractReason)
        if data.pin:
            fields["clocking_pin_hash"] = hash_pin(data.pin)
        if "monthlySalary" in provided:
            fields["monthly_salary"] = data.monthlySalary
        return fields

    @staticmethod
    def _fill_salary(fields: dict, employee: Optional[Employee] = None):
        if fields.get("monthly_salary") is not None:
            return
        hourly_rate = fields.get("hourly_rate", employee.hourly_rate if employee else None)
        hours = fields.get("contractual_hours", employee.contractual_hours if employee else None)
        salary = compute_monthly_salary(hourly_rate, hours)
        if salary is not None:
            fields["monthly_salary"] = salary

    def list_employees(self, include_inactive: bool = False) -> list[Employee]:
        return self.repo.get_employees(self.db, include_inactive=include_inactive)

    def get_employee(self, employee_id: int) -> Employee:
        employee = self.repo.get_employee_by_id(self.db, employee_id)
        if not employee:
            raise HTTPException(status_code=404, detail="Employee not found")
        return employee

    def create_employee(self, data: EmployeeCreate, user: User) -> Employee:
        fields = self._fields_from(data)
        self._fill_salary(fields)
        employee = self.repo.create_employee(self.db, **fields, is_draft=False, is_active=True, created_by=user.id)
        logger.info(f"✅ Employee {employee.id} ({employee.full_name}) created by {user.email}")
        return employee

    def create_draft(self, data: EmployeeDraft, user: User) -> Employee:
        """Save a partially filled employee; names default to placeholders"""
        fields = self._fields_from(data)
        fields.setdefault("first_name", None)
        fields.setdefault("last_name", None)
        fields["first_name"] = fields["first_name"] or "Brouillon"
        fields["last_name"] = fields["last_name"] or "Sans nom"
        self._fill_salary(fields)
        employee = self.repo.create_employee(self.db, **fields, is_draft=True, is_active=True, created_by=user.id)
        logger.info(f"📝 Employee draft {employee.id} saved by {user.email}")
        return employee

    def update_employee(self, employee_id: int, data: EmployeeUpdate, user: User) -> Employee:
        employee = self.get_employee(employee_id)
        fields = self._fields_from(data)
        if data.isActive is not None:
            fields["is_active"] = data.isActive
        if "hourly_rate" in fields or "contractual_hours" in fields:
            self._fill_salary(fields, employee)

        hire_date = fields.get("hire_date", employee.hire_date)
        end_date = fields.get("end_date", employee.end_date)
        if hire_date and end_date and end_date < hire_date:
            raise HTTPException(status_code=400, detail="endDate must be after hireDate")

        employee = self.repo.update_employee(self.db, employee, **fields)
        logger.info(f"✏️ Employee {employee.id} updated by {user.email}")
        return employee

    def finalize_draft(self, employee_id: int, user: User) -> Employee:
        """Promote a draft once the required fields are present"""
        employee = self.get_employee(employee_id)
        if not employee.is_draft:
            raise HTTPException(status_code=400, detail="Employee is not a draft")

        missing = [
            name
            for name, value in (
                ("email", employee.email),
                ("contractType", employee.contract_type),
                ("contractualHours", employee.contractual_hours),
                ("hireDate", employee.hire_date),
                ("pin", employee.clocking_pin_hash),
            )
            if not value
        ]
        if missing:
            raise HTTPException(status_code=400, detail=f"Missing required fields: {', '.join(missing)}")

        employee = self.repo.update_employee(self.db, employee, is_draft=False)
        logger.info(f"✅ Employee draft {employee.id} finalized by {user.email}")
        return employee

    def delete_employee(self, employee_id: int, user: User):
        """Soft delete: time entries and shifts stay attached"""
        employee = self.get_employee(employee_id)
        self.repo.update_employee(self.db, employee, is_active=False, deleted_at=clock.local_now())
        logger.info(f"🗑️ Employee {employee_id} deactivated by {user.email}")
