from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from hrms.database import get_db
from hrms.dependencies import Clock, ensure_self_or_hr, get_clock, get_current_employee
from hrms.models.employee import Employee
from hrms.schemas.attendance import AttendanceRecordResponse
from hrms.schemas.employee import EmployeeResponse
from hrms.schemas.leave import LeaveRequestResponse
from hrms.services.attendance_service import AttendanceService
from hrms.services.employee_service import EmployeeService
from hrms.services.leave_service import LeaveService
from hrms.services.notification import NotificationService

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/employee")
def employee_dashboard(
    employee_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_employee: Employee = Depends(get_current_employee),
):
    """Landing-page snapshot: profile and shift, today's attendance, notifications, upcoming leave."""
    target = employee_id or current_employee.id
    ensure_self_or_hr(current_employee, target)
    employee = EmployeeService(db).get(target)
    attendance = AttendanceService(db)
    today = attendance.local_date(target, clock())
    record = attendance.today(target, today)
    notifications = NotificationService.recent_for(db, target)
    upcoming = LeaveService(db).upcoming(target, today)

    return {
        "employee": EmployeeResponse.model_validate(employee).model_dump(mode="json"),
        "attendanceToday": (
            AttendanceRecordResponse.model_validate(record).model_dump(mode="json") if record else None
        ),
        "notifications": [
            {
                "id": n.id,
                "title": n.title,
                "message": n.message,
                "type": n.type,
                "link": n.link,
                "is_read": n.is_read,
                "created_at": n.created_at.isoformat() if n.created_at else None,
            }
            for n in notifications
        ],
        "upcomingLeaves": [
            LeaveRequestResponse.model_validate(r).model_dump(mode="json") for r in upcoming
        ],
    }
