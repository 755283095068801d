"""Dashboard aggregates for the back office home page"""

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Booking
from ...models_accounting import B2BRevenue, DailyTurnover
from ...models_content import ContactMessage
from ...models_hr import Employee, Task, TimeEntry
from ...shared import clock


def get_dashboard(db: Session) -> dict:
    today = clock.local_today().isoformat()
    month_start = today[:8] + "01"

    today_bookings = (
        db.query(func.count(Booking.id))
        .filter(Booking.date == today, Booking.status.in_(["pending", "confirmed"]))
        .scalar()
    )
    pending_bookings = db.query(func.count(Booking.id)).filter(Booking.status == "pending").scalar()

    clocked_in = (
        db.query(TimeEntry.employee_id, TimeEntry.clock_in, Employee.first_name, Employee.last_name)
        .join(Employee, Employee.id == TimeEntry.employee_id)
        .filter(TimeEntry.date == today, TimeEntry.status == "active", TimeEntry.is_active.is_(True))
        .order_by(TimeEntry.clock_in)
        .all()
    )

    unread_messages = db.query(func.count(ContactMessage.id)).filter(ContactMessage.status == "unread").scalar()
    pending_tasks = db.query(func.count(Task.id)).filter(Task.status == "pending").scalar()

    turnover_month = (
        db.query(func.coalesce(func.sum(DailyTurnover.ttc), 0.0))
        .filter(DailyTurnover.date >= month_start, DailyTurnover.date <= today)
        .scalar()
    )
    b2b_month = (
        db.query(func.coalesce(func.sum(B2BRevenue.ttc), 0.0))
        .filter(B2BRevenue.date >= month_start, B2BRevenue.date <= today)
        .scalar()
    )
    bookings_month = (
        db.query(func.coalesce(func.sum(Booking.total_price), 0.0))
        .filter(
            Booking.date >= month_start,
            Booking.date <= today,
            Booking.status.in_(["confirmed", "completed"]),
        )
        .scalar()
    )

    return {
        "date": today,
        "todayBookings": today_bookings or 0,
        "pendingBookings": pending_bookings or 0,
        "clockedInEmployees": [
            {"employeeId": row.employee_id, "name": f"{row.first_name} {row.last_name}", "clockIn": row.clock_in}
            for row in clocked_in
        ],
        "unreadMessages": unread_messages or 0,
        "pendingTasks": pending_tasks or 0,
        "revenueMonth": {
            "turnovers": round(float(turnover_month), 2),
            "b2b": round(float(b2b_month), 2),
            "bookings": round(float(bookings_month), 2),
            "total": round(float(turnover_month) + float(b2b_month), 2),
        },
    }
