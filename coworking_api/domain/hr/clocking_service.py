"""
Clocking service - PIN-protected clock-in/clock-out, corrections and reports

Guard order on clock-in: IP whitelist, PIN format, lockout, employee lookup,
PIN check, then the daily shift rules.
"""

import logging
from datetime import timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...config import CLOCKING_ALLOWED_IPS, SCHEDULE_TOLERANCE_MINUTES
from ...models_hr import Employee, Shift, TimeEntry
from ...rate_limiter import get_pin_lockout_remaining, record_failed_pin_attempt, reset_pin_attempts
from ...shared import clock
from ...shared.validators import PIN_PATTERN, parse_date, time_to_minutes
from ...utils.sanitization import sanitize_string
from .employee_service import verify_pin
from .repository import EmployeeRepository, ShiftRepository, TimeEntryRepository
from .schemas import ClockInRequest, ClockOutRequest, TimeEntryUpdate

logger = logging.getLogger(__name__)

MAX_SHIFTS_PER_DAY = 2
REPORT_TYPES = ("daily", "employee-stats", "summary")


def compute_total_hours(clock_in: str, clock_out: str) -> float:
    """Hours between two HH:MM times, wrapping past midnight"""
    minutes = time_to_minutes(clock_out) - time_to_minutes(clock_in)
    if minutes < 0:
        minutes += 24 * 60
    return round(minutes / 60, 2)


def within_clock_in_window(time_str: str, shifts: list[Shift]) -> bool:
    """Clock-in accepted from `tolerance` minutes before a shift start until its end"""
    minutes = time_to_minutes(time_str)
    return any(
        time_to_minutes(s.start_time) - SCHEDULE_TOLERANCE_MINUTES <= minutes <= time_to_minutes(s.end_time)
        for s in shifts
    )


def within_clock_out_window(time_str: str, shifts: list[Shift]) -> bool:
    """Clock-out accepted from a shift start until `tolerance` minutes after its end"""
    minutes = time_to_minutes(time_str)
    return any(
        time_to_minutes(s.start_time) <= minutes <= time_to_minutes(s.end_time) + SCHEDULE_TOLERANCE_MINUTES
        for s in shifts
    )


def justification_required(message: str) -> HTTPException:
    return HTTPException(status_code=400, detail={"message": message, "code": "JUSTIFICATION_REQUIRED"})


class ClockingService:
    """Service layer for time entries"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = TimeEntryRepository()

    # ============================================================================
    # GUARDS
    # ============================================================================

    @staticmethod
    def _check_ip(ip: str):
        if CLOCKING_ALLOWED_IPS and ip not in CLOCKING_ALLOWED_IPS:
            logger.warning(f"🚫 Clocking attempt from unauthorized IP {ip}")
            raise HTTPException(status_code=403, detail="Clocking is not allowed from this network")

    @staticmethod
    def _check_pin_format(pin: Optional[str]):
        if not pin or not PIN_PATTERN.match(pin):
            raise HTTPException(status_code=400, detail="PIN must be exactly 4 digits")

    @staticmethod
    def _check_lockout(ip: str, employee_id: int):
        remaining = get_pin_lockout_remaining(ip, employee_id)
        if remaining:
            raise HTTPException(
                status_code=429,
                detail={"message": "Too many failed PIN attempts", "retry_after": remaining},
                headers={"Retry-After": str(remaining)},
            )

    def _get_employee(self, employee_id: int) -> Employee:
        employee = EmployeeRepository.get_employee_by_id(self.db, employee_id)
        if not employee:
            raise HTTPException(status_code=404, detail="Employee not found")
        if not employee.is_active:
            raise HTTPException(status_code=403, detail="Employee is inactive")
        return employee

    @staticmethod
    def _check_pin(employee: Employee, pin: str, ip: str):
        if not verify_pin(employee, pin):
            attempts = record_failed_pin_attempt(ip, employee.id)
            logger.warning(f"🔑 Wrong PIN for employee {employee.id} from {ip} (attempt {attempts})")
            raise HTTPException(status_code=401, detail="Incorrect PIN")
        reset_pin_attempts(ip, employee.id)

    # ============================================================================
    # CLOCK IN / OUT
    # ============================================================================

    def clock_in(self, data: ClockInRequest, ip: str) -> TimeEntry:
        self._check_ip(ip)
        self._check_pin_format(data.pin)
        self._check_lockout(ip, data.employeeId)
        employee = self._get_employee(data.employeeId)
        self._check_pin(employee, data.pin, ip)

        now = clock.local_now()
        today = now.strftime("%Y-%m-%d")
        clock_in_time = data.clockIn or now.strftime("%H:%M")

        entries = self.repo.get_entries_for_day(self.db, employee.id, today)
        if any(e.status == "active" for e in entries):
            raise HTTPException(status_code=409, detail="A shift is already in progress, clock out first")
        if len(entries) >= MAX_SHIFTS_PER_DAY:
            raise HTTPException(status_code=409, detail="Maximum of 2 shifts per day reached")

        shifts = ShiftRepository.get_scheduled_shifts(self.db, employee.id, today)
        out_of_schedule = bool(shifts) and not within_clock_in_window(clock_in_time, shifts)
        note = sanitize_string(data.justificationNote) or None
        if out_of_schedule and not note:
            raise justification_required("Clock-in outside scheduled hours requires a justification")

        try:
            entry = self.repo.create_entry(
                self.db,
                employee_id=employee.id,
                date=today,
                clock_in=clock_in_time,
                shift_number=self.repo.get_last_shift_number(self.db, employee.id, today) + 1,
                status="active",
                is_out_of_schedule=out_of_schedule,
                justification_note=note if out_of_schedule else None,
            )
        except IntegrityError as e:
            self.db.rollback()
            raise HTTPException(status_code=409, detail="Shift already recorded for today") from e

        logger.info(f"⏱️ {employee.full_name} clocked in at {clock_in_time} (shift {entry.shift_number})")
        return entry

    def clock_out(self, data: ClockOutRequest, ip: str) -> TimeEntry:
        self._check_ip(ip)
        if data.pin is not None:
            self._check_pin_format(data.pin)
            self._check_lockout(ip, data.employeeId)
        employee = self._get_employee(data.employeeId)
        if data.pin is not None:
            self._check_pin(employee, data.pin, ip)

        entry = self.repo.get_active_entry(self.db, employee.id, data.timeEntryId)
        if not entry:
            raise HTTPException(status_code=404, detail="No active shift found")

        clock_out_time = data.clockOut or clock.local_now().strftime("%H:%M")
        if clock_out_time == entry.clock_in:
            raise HTTPException(status_code=400, detail="Clock-out time must differ from clock-in time")

        note = sanitize_string(data.justificationNote) or None
        out_of_schedule_exit = False
        if not entry.is_out_of_schedule:
            shifts = ShiftRepository.get_scheduled_shifts(self.db, employee.id, entry.date)
            out_of_schedule_exit = bool(shifts) and not within_clock_out_window(clock_out_time, shifts)
            if out_of_schedule_exit and not note:
                raise justification_required("Clock-out outside scheduled hours requires a justification")

        if note:
            if entry.justification_note:
                entry.justification_note = f"[Arrivée] {entry.justification_note}\n---\n[Départ] {note}"
            else:
                entry.justification_note = f"[Départ] {note}"
            entry.justification_read = False
        if out_of_schedule_exit:
            entry.is_out_of_schedule = True

        entry.clock_out = clock_out_time
        entry.total_hours = compute_total_hours(entry.clock_in, clock_out_time)
        entry.status = "completed"
        self.db.commit()
        self.db.refresh(entry)

        logger.info(f"⏱️ {employee.full_name} clocked out at {clock_out_time} ({entry.total_hours}h)")
        return entry

    # ============================================================================
    # ADMIN
    # ============================================================================

    def list_entries(
        self,
        employee_id: Optional[int] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        status: Optional[str] = None,
        has_error: Optional[bool] = None,
    ) -> list[TimeEntry]:
        return self.repo.search_entries(self.db, employee_id, start_date, end_date, status, has_error)

    def get_entry(self, entry_id: int) -> TimeEntry:
        entry = self.repo.get_entry_by_id(self.db, entry_id)
        if not entry:
            raise HTTPException(status_code=404, detail="Time entry not found")
        return entry

    def update_entry(self, entry_id: int, data: TimeEntryUpdate) -> TimeEntry:
        """Manual correction; hours are recomputed and any error flag cleared"""
        entry = self.get_entry(entry_id)
        if data.date is not None:
            entry.date = data.date
        if data.clockIn is not None:
            entry.clock_in = data.clockIn
        if data.clockOut is not None:
            entry.clock_out = data.clockOut
        if data.justificationNote is not None:
            entry.justification_note = sanitize_string(data.justificationNote)

        if entry.clock_out:
            if entry.clock_out == entry.clock_in:
                raise HTTPException(status_code=400, detail="Clock-out time must differ from clock-in time")
            entry.total_hours = compute_total_hours(entry.clock_in, entry.clock_out)
            entry.status = "completed"
            entry.has_error = False
            entry.error_type = None
            entry.error_message = None
        if data.status is not None:
            entry.status = data.status

        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise HTTPException(status_code=409, detail="Conflicting shift number for that day") from e
        self.db.refresh(entry)
        logger.info(f"✏️ Time entry {entry.id} corrected")
        return entry

    def delete_entry(self, entry_id: int):
        entry = self.get_entry(entry_id)
        entry.is_active = False
        self.db.commit()
        logger.info(f"🗑️ Time entry {entry_id} deleted")

    def mark_justification_read(self, entry_id: int) -> TimeEntry:
        entry = self.get_entry(entry_id)
        entry.justification_read = True
        self.db.commit()
        self.db.refresh(entry)
        return entry

    # ============================================================================
    # REPORTS
    # ============================================================================

    def report(
        self,
        report_type: str,
        date: Optional[str] = None,
        employee_id: Optional[int] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> dict:
        if report_type == "daily":
            return self.daily_report(date or clock.local_today().isoformat())
        if report_type == "employee-stats":
            if not employee_id:
                raise HTTPException(status_code=400, detail="employeeId is required for employee-stats")
            return self.employee_stats(employee_id, start_date, end_date)
        if report_type == "summary":
            return self.summary_stats(start_date, end_date)
        raise HTTPException(
            status_code=400,
            detail=f"Invalid report type. Available types: {', '.join(REPORT_TYPES)}",
        )

    @staticmethod
    def _stats(entries: list[TimeEntry]) -> dict:
        total_hours = round(sum(e.total_hours or 0 for e in entries), 2)
        total_shifts = len(entries)
        active = sum(1 for e in entries if e.status == "active")
        return {
            "totalHours": total_hours,
            "totalShifts": total_shifts,
            "averageHoursPerShift": round(total_hours / total_shifts, 2) if total_shifts else 0,
            "activeShifts": active,
            "completedShifts": total_shifts - active,
        }

    def daily_report(self, date: str) -> dict:
        entries = self.repo.search_entries(self.db, start_date=date, end_date=date)

        by_employee: dict[int, dict] = {}
        for entry in sorted(entries, key=lambda e: (e.employee_id, e.shift_number)):
            row = by_employee.setdefault(
                entry.employee_id,
                {
                    "employeeId": entry.employee_id,
                    "employeeName": entry.employee.full_name if entry.employee else None,
                    "shifts": [],
                    "totalHours": 0,
                    "activeShifts": 0,
                },
            )
            row["shifts"].append(
                {
                    "id": entry.id,
                    "shiftNumber": entry.shift_number,
                    "clockIn": entry.clock_in,
                    "clockOut": entry.clock_out,
                    "totalHours": entry.total_hours,
                    "status": entry.status,
                }
            )
            row["totalHours"] = round(row["totalHours"] + (entry.total_hours or 0), 2)
            if entry.status == "active":
                row["activeShifts"] += 1

        employees = list(by_employee.values())
        return {
            "date": date,
            "employees": employees,
            "totalActiveShifts": sum(e["activeShifts"] for e in employees),
            "totalCompletedShifts": sum(len(e["shifts"]) - e["activeShifts"] for e in employees),
            "totalHoursWorked": round(sum(e["totalHours"] for e in employees), 2),
        }

    def employee_stats(self, employee_id: int, start_date: Optional[str], end_date: Optional[str]) -> dict:
        today = clock.local_today()
        start_date = start_date or (today - timedelta(days=30)).isoformat()
        end_date = end_date or today.isoformat()
        if parse_date(start_date) > parse_date(end_date):
            raise HTTPException(status_code=400, detail="startDate must be before endDate")

        entries = self.repo.search_entries(self.db, employee_id=employee_id, start_date=start_date, end_date=end_date)
        return {"employeeId": employee_id, "startDate": start_date, "endDate": end_date, **self._stats(entries)}

    def summary_stats(self, start_date: Optional[str], end_date: Optional[str]) -> dict:
        today = clock.local_today()
        start_date = start_date or (today - timedelta(days=7)).isoformat()
        end_date = end_date or today.isoformat()

        entries = self.repo.search_entries(self.db, start_date=start_date, end_date=end_date)
        return {
            "startDate": start_date,
            "endDate": end_date,
            "employees": len({e.employee_id for e in entries}),
            **self._stats(entries),
        }

    # ============================================================================
    # ATTENDANCE
    # ============================================================================

    def flag_missing_clock_outs(self) -> int:
        """Flag open entries from previous days; returns how many were flagged"""
        today = clock.local_today().isoformat()
        stale = self.repo.get_stale_active_entries(self.db, today)
        for entry in stale:
            entry.has_error = True
            entry.error_type = "MISSING_CLOCK_OUT"
            entry.error_message = f"No clock-out recorded for shift {entry.shift_number} on {entry.date}"
        self.db.commit()
        if stale:
            logger.warning(f"⚠️ Flagged {len(stale)} time entries with missing clock-out")
        return len(stale)
