from datetime import datetime
from unittest.mock import patch

import pytest

from coworking_api.domain.hr.clocking_service import ClockingService, compute_total_hours
from coworking_api.domain.hr.employee_service import compute_monthly_salary, hash_pin, verify_pin
from coworking_api.models_hr import Employee, Shift, TimeEntry

MONDAY_NINE = datetime(2026, 10, 19, 9, 0)
TODAY = "2026-10-19"

EMPLOYEE_PAYLOAD = {
    "firstName": "Marie",
    "lastName": "Dupont",
    "email": "marie@coworkingcafe.fr",
    "contractType": "CDI",
    "contractualHours": 35,
    "hireDate": "2026-01-05",
    "hourlyRate": 12,
    "pin": "1234",
}


@pytest.fixture(autouse=True)
def monday_nine():
    with patch("coworking_api.shared.clock.local_now", return_value=MONDAY_NINE):
        yield


@pytest.fixture
def employee(db):
    employee = Employee(first_name="Marie", last_name="Dupont", clocking_pin_hash=hash_pin("1234"))
    db.add(employee)
    db.commit()
    db.refresh(employee)
    return employee


@pytest.fixture
def add_shift(db):
    def _add(employee, start_time, end_time, date=TODAY):
        shift = Shift(employee_id=employee.id, date=date, start_time=start_time, end_time=end_time)
        db.add(shift)
        db.commit()
        return shift

    return _add


def test_total_hours_wrap_midnight():
    assert compute_total_hours("22:00", "02:30") == 4.5


def test_monthly_salary():
    assert compute_monthly_salary(12, 35) == 1820.0
    assert compute_monthly_salary(None, 35) is None


def test_pin_stored_as_bcrypt_hash(employee):
    assert employee.clocking_pin_hash.startswith("$2b$")
    assert verify_pin(employee, "1234")
    assert not verify_pin(employee, "0000")


def test_unreadable_pin_hash_is_rejected():
    assert not verify_pin(Employee(id=1, clocking_pin_hash="not-a-bcrypt-hash"), "1234")
    assert not verify_pin(Employee(id=2), "1234")


class TestEmployees:
    def test_create(self, admin_client):
        response = admin_client.post("/hr/employees", json=EMPLOYEE_PAYLOAD)
        assert response.status_code == 201
        body = response.json()
        assert body["fullName"] == "Marie Dupont"
        assert body["monthlySalary"] == 1820.0
        assert body["hasPin"] is True
        assert body["employeeRole"] == "Employé polyvalent"
        assert body["employmentStatus"] == "active"
        assert "pin" not in body

    def test_staff_reads_but_cannot_create(self, staff_client, employee):
        assert staff_client.get("/hr/employees").status_code == 200
        assert staff_client.post("/hr/employees", json=EMPLOYEE_PAYLOAD).status_code == 403

    def test_invalid_pin_format(self, admin_client):
        response = admin_client.post("/hr/employees", json={**EMPLOYEE_PAYLOAD, "pin": "12"})
        assert response.status_code == 422

    def test_end_date_before_hire_date(self, admin_client):
        response = admin_client.post("/hr/employees", json={**EMPLOYEE_PAYLOAD, "endDate": "2025-12-31"})
        assert response.status_code == 422

    def test_draft_then_finalize(self, admin_client):
        draft = admin_client.post("/hr/employees/draft", json={"email": "new@coworkingcafe.fr"})
        assert draft.status_code == 201
        body = draft.json()
        assert body["isDraft"] is True
        assert body["employmentStatus"] == "draft"
        assert body["firstName"] == "Brouillon"

        incomplete = admin_client.post(f"/hr/employees/{body['id']}/finalize")
        assert incomplete.status_code == 400
        assert "contractType" in incomplete.json()["detail"]

        admin_client.patch(
            f"/hr/employees/{body['id']}",
            json={"firstName": "Paul", "lastName": "Martin", "contractType": "CDD", "contractualHours": 20,
                  "hireDate": "2026-02-01", "pin": "4321"},
        )
        finalized = admin_client.post(f"/hr/employees/{body['id']}/finalize")
        assert finalized.status_code == 200
        assert finalized.json()["isDraft"] is False

    def test_delete_deactivates(self, admin_client, employee, db):
        assert admin_client.delete(f"/hr/employees/{employee.id}").status_code == 200
        db.refresh(employee)
        assert employee.is_active is False
        assert employee.deleted_at is not None


class TestShifts:
    def test_create_and_list(self, admin_client, employee):
        response = admin_client.post(
            "/hr/shifts",
            json={"employeeId": employee.id, "date": TODAY, "startTime": "09:00", "endTime": "17:00", "type": "morning"},
        )
        assert response.status_code == 201
        assert response.json()["employeeName"] == "Marie Dupont"

        listing = admin_client.get("/hr/shifts", params={"employeeId": employee.id})
        assert len(listing.json()) == 1

    def test_same_start_and_end(self, admin_client, employee):
        response = admin_client.post(
            "/hr/shifts", json={"employeeId": employee.id, "date": TODAY, "startTime": "09:00", "endTime": "09:00"}
        )
        assert response.status_code == 422

    def test_unknown_employee(self, admin_client):
        response = admin_client.post(
            "/hr/shifts", json={"employeeId": 999, "date": TODAY, "startTime": "09:00", "endTime": "12:00"}
        )
        assert response.status_code == 404


class TestClocking:
    def test_clock_in_and_out(self, guest_client, employee):
        clock_in = guest_client.post("/time-entries/clock-in", json={"employeeId": employee.id, "pin": "1234"})
        assert clock_in.status_code == 201
        entry = clock_in.json()
        assert entry["clockIn"] == "09:00"
        assert entry["shiftNumber"] == 1
        assert entry["status"] == "active"

        clock_out = guest_client.post(
            "/time-entries/clock-out", json={"employeeId": employee.id, "clockOut": "17:30"}
        )
        assert clock_out.status_code == 200
        assert clock_out.json()["totalHours"] == 8.5
        assert clock_out.json()["status"] == "completed"

    def test_active_shift_blocks_clock_in(self, guest_client, employee):
        guest_client.post("/time-entries/clock-in", json={"employeeId": employee.id, "pin": "1234"})
        response = guest_client.post("/time-entries/clock-in", json={"employeeId": employee.id, "pin": "1234"})
        assert response.status_code == 409

    def test_two_shifts_per_day(self, guest_client, employee, db):
        for number, (start, end) in enumerate((("07:00", "08:00"), ("08:15", "08:45")), start=1):
            db.add(
                TimeEntry(
                    employee_id=employee.id,
                    date=TODAY,
                    clock_in=start,
                    clock_out=end,
                    shift_number=number,
                    status="completed",
                )
            )
        db.commit()
        response = guest_client.post("/time-entries/clock-in", json={"employeeId": employee.id, "pin": "1234"})
        assert response.status_code == 409

    def test_clock_in_after_deleted_entry(self, guest_client, admin_client, employee):
        first = guest_client.post("/time-entries/clock-in", json={"employeeId": employee.id, "pin": "1234"})
        assert admin_client.delete(f"/time-entries/{first.json()['id']}").status_code == 200

        response = guest_client.post("/time-entries/clock-in", json={"employeeId": employee.id, "pin": "1234"})
        assert response.status_code == 201
        assert response.json()["shiftNumber"] == 2

    def test_wrong_pin_then_lockout(self, guest_client, employee):
        for _ in range(5):
            wrong = guest_client.post("/time-entries/clock-in", json={"employeeId": employee.id, "pin": "0000"})
            assert wrong.status_code == 401

        locked = guest_client.post("/time-entries/clock-in", json={"employeeId": employee.id, "pin": "1234"})
        assert locked.status_code == 429
        assert "Retry-After" in locked.headers

    def test_malformed_pin(self, guest_client, employee):
        response = guest_client.post("/time-entries/clock-in", json={"employeeId": employee.id, "pin": "12a4"})
        assert response.status_code == 400

    def test_unknown_and_inactive_employee(self, guest_client, employee, db):
        assert guest_client.post("/time-entries/clock-in", json={"employeeId": 999, "pin": "1234"}).status_code == 404
        employee.is_active = False
        db.commit()
        response = guest_client.post("/time-entries/clock-in", json={"employeeId": employee.id, "pin": "1234"})
        assert response.status_code == 403

    def test_out_of_schedule_needs_justification(self, guest_client, employee, add_shift):
        add_shift(employee, "14:00", "18:00")

        refused = guest_client.post("/time-entries/clock-in", json={"employeeId": employee.id, "pin": "1234"})
        assert refused.status_code == 400
        assert refused.json()["detail"]["code"] == "JUSTIFICATION_REQUIRED"

        accepted = guest_client.post(
            "/time-entries/clock-in",
            json={"employeeId": employee.id, "pin": "1234", "justificationNote": "Inventaire"},
        )
        assert accepted.status_code == 201
        assert accepted.json()["isOutOfSchedule"] is True
        assert accepted.json()["justificationNote"] == "Inventaire"

    def test_early_clock_in_within_tolerance(self, guest_client, employee, add_shift):
        add_shift(employee, "09:10", "17:00")
        response = guest_client.post("/time-entries/clock-in", json={"employeeId": employee.id, "pin": "1234"})
        assert response.status_code == 201
        assert response.json()["isOutOfSchedule"] is False

    def test_late_clock_out_needs_justification(self, guest_client, employee, add_shift):
        add_shift(employee, "09:00", "17:00")
        guest_client.post("/time-entries/clock-in", json={"employeeId": employee.id, "pin": "1234"})

        refused = guest_client.post("/time-entries/clock-out", json={"employeeId": employee.id, "clockOut": "18:00"})
        assert refused.status_code == 400

        accepted = guest_client.post(
            "/time-entries/clock-out",
            json={"employeeId": employee.id, "clockOut": "18:00", "justificationNote": "Client en retard"},
        )
        body = accepted.json()
        assert body["isOutOfSchedule"] is True
        assert body["justificationNote"] == "[Départ] Client en retard"
        assert body["justificationRead"] is False

    def test_clock_out_without_active_shift(self, guest_client, employee):
        response = guest_client.post("/time-entries/clock-out", json={"employeeId": employee.id})
        assert response.status_code == 404


class TestTimeEntryAdmin:
    @pytest.fixture
    def stale_entry(self, db, employee):
        entry = TimeEntry(employee_id=employee.id, date="2026-10-18", clock_in="10:00", status="active")
        db.add(entry)
        db.commit()
        db.refresh(entry)
        return entry

    def test_flag_missing_clock_outs(self, db, stale_entry):
        assert ClockingService(db).flag_missing_clock_outs() == 1
        db.refresh(stale_entry)
        assert stale_entry.has_error is True
        assert stale_entry.error_type == "MISSING_CLOCK_OUT"
        # already flagged entries are left alone
        assert ClockingService(db).flag_missing_clock_outs() == 0

    def test_correction_clears_error(self, admin_client, db, stale_entry):
        ClockingService(db).flag_missing_clock_outs()
        response = admin_client.patch(f"/time-entries/{stale_entry.id}", json={"clockOut": "14:00"})
        body = response.json()
        assert body["status"] == "completed"
        assert body["totalHours"] == 4
        assert body["hasError"] is False

    def test_list_errors(self, staff_client, db, stale_entry):
        ClockingService(db).flag_missing_clock_outs()
        response = staff_client.get("/time-entries", params={"hasError": "true"})
        assert [e["id"] for e in response.json()] == [stale_entry.id]

    def test_mark_justification_read(self, staff_client, stale_entry):
        response = staff_client.post(f"/time-entries/{stale_entry.id}/mark-justification-read")
        assert response.json()["justificationRead"] is True

    def test_soft_delete(self, admin_client, staff_client, stale_entry):
        assert admin_client.delete(f"/time-entries/{stale_entry.id}").status_code == 200
        assert staff_client.get("/time-entries").json() == []


class TestReports:
    def test_daily_report(self, staff_client, guest_client, employee):
        guest_client.post("/time-entries/clock-in", json={"employeeId": employee.id, "pin": "1234"})
        guest_client.post("/time-entries/clock-out", json={"employeeId": employee.id, "clockOut": "12:30"})

        response = staff_client.get("/time-entries/reports", params={"type": "daily", "date": TODAY})
        body = response.json()
        assert body["totalHoursWorked"] == 3.5
        assert body["totalCompletedShifts"] == 1
        assert body["employees"][0]["employeeName"] == "Marie Dupont"

    def test_employee_stats_needs_employee(self, staff_client):
        response = staff_client.get("/time-entries/reports", params={"type": "employee-stats"})
        assert response.status_code == 400

    def test_unknown_report(self, staff_client):
        assert staff_client.get("/time-entries/reports", params={"type": "weekly"}).status_code == 400

    def test_summary_defaults_to_last_week(self, staff_client):
        body = staff_client.get("/time-entries/reports", params={"type": "summary"}).json()
        assert body["startDate"] == "2026-10-12"
        assert body["endDate"] == TODAY
        assert body["totalShifts"] == 0
