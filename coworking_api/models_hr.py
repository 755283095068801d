from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    place_of_birth = Column(JSON, nullable=True)  # {"city", "department", "country"}
    address = Column(JSON, nullable=True)  # {"street", "postal_code", "city"}
    social_security_number = Column(String(15), nullable=True)
    # Contract
    contract_type = Column(String(10), nullable=True)  # CDI, CDD, Stage
    contractual_hours = Column(Float, nullable=True)  # weekly hours
    hire_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    end_contract_reason = Column(String(50), nullable=True)
    # Payroll
    level = Column(String(20), nullable=True)
    step = Column(Integer, nullable=True)
    hourly_rate = Column(Float, nullable=True)
    monthly_salary = Column(Float, nullable=True)
    iban = Column(String(50), nullable=True)
    bic = Column(String(20), nullable=True)
    # Manager, Assistant manager, Employé polyvalent
    employee_role = Column(String(50), default="Employé polyvalent", nullable=False)
    # {"monday": {"available": true, "slots": [{"start": "09:00", "end": "17:00"}]}, ...}
    availability = Column(JSON, nullable=True)
    clocking_pin_hash = Column(String(128), nullable=True)
    color = Column(String(7), default="#14b8a6")
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    is_draft = Column(Boolean, default=False, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    deleted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    shifts = relationship("Shift", back_populates="employee")
    time_entries = relationship("TimeEntry", back_populates="employee")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Shift(Base):
    """A planned work slot"""

    __tablename__ = "shifts"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), index=True, nullable=False)
    date = Column(String(10), index=True, nullable=False)  # YYYY-MM-DD
    start_time = Column(String(5), nullable=False)  # HH:MM
    end_time = Column(String(5), nullable=False)  # HH:MM
    shift_type = Column(String(20), default="custom", nullable=False)  # morning, afternoon, evening, custom
    location = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    employee = relationship("Employee", back_populates="shifts")


class TimeEntry(Base):
    """An actual clock-in/clock-out record"""

    __tablename__ = "time_entries"
    __table_args__ = (
        UniqueConstraint("employee_id", "date", "shift_number", name="unique_employee_shift_per_day"),
    )

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), index=True, nullable=False)
    date = Column(String(10), index=True, nullable=False)  # YYYY-MM-DD
    clock_in = Column(String(5), nullable=False)  # HH:MM
    clock_out = Column(String(5), nullable=True)
    shift_number = Column(Integer, default=1, nullable=False)  # order within the day, deleted entries included
    total_hours = Column(Float, nullable=True)
    status = Column(String(20), default="active", nullable=False)  # active, completed
    has_error = Column(Boolean, default=False, nullable=False)
    error_type = Column(String(30), nullable=True)  # MISSING_CLOCK_OUT, INVALID_TIME_RANGE
    error_message = Column(String(500), nullable=True)
    is_out_of_schedule = Column(Boolean, default=False, nullable=False)
    justification_note = Column(Text, nullable=True)
    justification_read = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    employee = relationship("Employee", back_populates="time_entries")


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    priority = Column(String(10), default="medium", nullable=False)  # low, medium, high
    status = Column(String(20), default="pending", nullable=False)  # pending, completed
    due_date = Column(String(10), nullable=True)  # YYYY-MM-DD
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    completed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
