"""HR repository - Database operations for employees, shifts and time entries"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models_hr import Employee, Shift, TimeEntry


class EmployeeRepository:
    """Repository for employee database operations"""

    @staticmethod
    def get_employees(db: Session, include_inactive: bool = False, include_drafts: bool = True) -> list[Employee]:
        query = db.query(Employee).filter(Employee.deleted_at.is_(None))
        if not include_inactive:
            query = query.filter(Employee.is_active == True)  # noqa: E712
        if not include_drafts:
            query = query.filter(Employee.is_draft == False)  # noqa: E712
        return query.order_by(Employee.last_name, Employee.first_name).all()

    @staticmethod
    def get_employee_by_id(db: Session, employee_id: int) -> Optional[Employee]:
        return db.query(Employee).filter(Employee.id == employee_id, Employee.deleted_at.is_(None)).first()

    @staticmethod
    def create_employee(db: Session, **employee_data) -> Employee:
        employee = Employee(**employee_data)
        db.add(employee)
        db.commit()
        db.refresh(employee)
        return employee

    @staticmethod
    def update_employee(db: Session, employee: Employee, **updates) -> Employee:
        for key, value in updates.items():
            if hasattr(employee, key):
                setattr(employee, key, value)
        db.commit()
        db.refresh(employee)
        return employee


class ShiftRepository:
    """Repository for shift database operations"""

    @staticmethod
    def search_shifts(
        db: Session,
        employee_id: Optional[int] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        shift_type: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> list[Shift]:
        query = db.query(Shift).options(joinedload(Shift.employee))
        if employee_id:
            query = query.filter(Shift.employee_id == employee_id)
        if start_date:
            query = query.filter(Shift.date >= start_date)
        if end_date:
            query = query.filter(Shift.date <= end_date)
        if shift_type:
            query = query.filter(Shift.shift_type == shift_type)
        if is_active is not None:
            query = query.filter(Shift.is_active == is_active)
        return query.order_by(Shift.date, Shift.start_time).all()

    @staticmethod
    def get_shift_by_id(db: Session, shift_id: int) -> Optional[Shift]:
        return db.query(Shift).options(joinedload(Shift.employee)).filter(Shift.id == shift_id).first()

    @staticmethod
    def get_scheduled_shifts(db: Session, employee_id: int, date: str) -> list[Shift]:
        return (
            db.query(Shift)
            .filter(Shift.employee_id == employee_id, Shift.date == date, Shift.is_active == True)  # noqa: E712
            .order_by(Shift.start_time)
            .all()
        )

    @staticmethod
    def create_shift(db: Session, **shift_data) -> Shift:
        shift = Shift(**shift_data)
        db.add(shift)
        db.commit()
        db.refresh(shift)
        return shift

    @staticmethod
    def update_shift(db: Session, shift: Shift, **updates) -> Shift:
        for key, value in updates.items():
            if hasattr(shift, key):
                setattr(shift, key, value)
        db.commit()
        db.refresh(shift)
        return shift

    @staticmethod
    def delete_shift(db: Session, shift: Shift) -> None:
        db.delete(shift)
        db.commit()


class TimeEntryRepository:
    """Repository for time entry database operations"""

    @staticmethod
    def get_entries_for_day(db: Session, employee_id: int, date: str) -> list[TimeEntry]:
        return (
            db.query(TimeEntry)
            .filter(
                TimeEntry.employee_id == employee_id,
                TimeEntry.date == date,
                TimeEntry.is_active == True,  # noqa: E712
            )
            .order_by(TimeEntry.shift_number)
            .all()
        )

    @staticmethod
    def get_last_shift_number(db: Session, employee_id: int, date: str) -> int:
        """Highest shift number used that day, soft-deleted entries included"""
        return (
            db.query(func.coalesce(func.max(TimeEntry.shift_number), 0))
            .filter(TimeEntry.employee_id == employee_id, TimeEntry.date == date)
            .scalar()
        )

    @staticmethod
    def get_active_entry(db: Session, employee_id: int, entry_id: Optional[int] = None) -> Optional[TimeEntry]:
        """Open entry of an employee, the most recent when no id is given"""
        query = db.query(TimeEntry).filter(
            TimeEntry.employee_id == employee_id,
            TimeEntry.status == "active",
            TimeEntry.is_active == True,  # noqa: E712
        )
        if entry_id is not None:
            query = query.filter(TimeEntry.id == entry_id)
        return query.order_by(TimeEntry.date.desc(), TimeEntry.shift_number.desc()).first()

    @staticmethod
    def get_entry_by_id(db: Session, entry_id: int) -> Optional[TimeEntry]:
        return (
            db.query(TimeEntry)
            .options(joinedload(TimeEntry.employee))
            .filter(TimeEntry.id == entry_id, TimeEntry.is_active == True)  # noqa: E712
            .first()
        )

    @staticmethod
    def search_entries(
        db: Session,
        employee_id: Optional[int] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        status: Optional[str] = None,
        has_error: Optional[bool] = None,
    ) -> list[TimeEntry]:
        query = (
            db.query(TimeEntry)
            .options(joinedload(TimeEntry.employee))
            .filter(TimeEntry.is_active == True)  # noqa: E712
        )
        if employee_id:
            query = query.filter(TimeEntry.employee_id == employee_id)
        if start_date:
            query = query.filter(TimeEntry.date >= start_date)
        if end_date:
            query = query.filter(TimeEntry.date <= end_date)
        if status:
            query = query.filter(TimeEntry.status == status)
        if has_error is not None:
            query = query.filter(TimeEntry.has_error == has_error)
        return query.order_by(TimeEntry.date.desc(), TimeEntry.clock_in.desc()).all()

    @staticmethod
    def get_stale_active_entries(db: Session, before_date: str) -> list[TimeEntry]:
        """Entries from earlier days that were never clocked out"""
        return (
            db.query(TimeEntry)
            .filter(
                TimeEntry.status == "active",
                TimeEntry.is_active == True,  # noqa: E712
                TimeEntry.date < before_date,
                TimeEntry.has_error == False,  # noqa: E712
            )
            .all()
        )

    @staticmethod
    def create_entry(db: Session, **entry_data) -> TimeEntry:
        entry = TimeEntry(**entry_data)
        db.add(entry)
        db.commit()
        db.refresh(entry)
        return entry
