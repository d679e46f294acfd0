from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from hrms.core.exceptions import AccessDeniedError
from hrms.database import get_db
from hrms.dependencies import Clock, get_clock, get_current_employee, require_hr
from hrms.models.employee import Employee
from hrms.schemas.attendance import (
    AttendanceRecordResponse,
    CheckInRequest,
    MarkAbsentRequest,
    MarkAbsentResponse,
    RegularizationAction,
    RegularizationCreate,
    RegularizationResponse,
)
from hrms.services.attendance_service import AttendanceService
from hrms.services.regularization_service import RegularizationService

router = APIRouter(prefix="/attendance", tags=["attendance"])


def _assert_self(current: Employee, employee_id: Optional[int]):
    # Attendance events are always recorded for the authenticated employee
    if employee_id is not None and employee_id != current.id:
        raise AccessDeniedError("You can only record your own attendance")


@router.post("/check-in", response_model=AttendanceRecordResponse)
def check_in(
    payload: CheckInRequest,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_employee: Employee = Depends(get_current_employee),
):
    _assert_self(current_employee, payload.employee_id)
    return AttendanceService(db).check_in(
        current_employee.id, payload.device_latitude, payload.device_longitude, clock()
    )


@router.post("/check-out", response_model=AttendanceRecordResponse)
def check_out(
    payload: CheckInRequest,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_employee: Employee = Depends(get_current_employee),
):
    _assert_self(current_employee, payload.employee_id)
    return AttendanceService(db).check_out(
        current_employee.id, payload.device_latitude, payload.device_longitude, clock()
    )


@router.get("/today", response_model=Optional[AttendanceRecordResponse])
def today(
    employee_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_employee: Employee = Depends(get_current_employee),
):
    target = employee_id or current_employee.id
    if target != current_employee.id and not current_employee.is_hr:
        raise AccessDeniedError("You can only view your own attendance")
    service = AttendanceService(db)
    return service.today(target, service.local_date(target, clock()))


@router.get("", response_model=List[AttendanceRecordResponse])
def list_attendance(
    employee_id: Optional[int] = Query(None),
    employee_code: Optional[str] = Query(None),
    employee_name: Optional[str] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    current_employee: Employee = Depends(get_current_employee),
):
    if not current_employee.is_hr:
        # Non-HR callers are pinned to their own records
        if employee_id is not None and employee_id != current_employee.id:
            raise AccessDeniedError("You can only view your own attendance")
        employee_id, employee_code, employee_name = current_employee.id, None, None
    return AttendanceService(db).list_records(
        employee_id=employee_id,
        employee_code=employee_code,
        employee_name=employee_name,
        date_from=date_from,
        date_to=date_to,
    )


@router.post("/mark-absent", response_model=MarkAbsentResponse)
def mark_absent(
    payload: MarkAbsentRequest,
    db: Session = Depends(get_db),
    current_employee: Employee = Depends(require_hr()),
):
    created = AttendanceService(db).mark_absentees(payload.attendance_date)
    return MarkAbsentResponse(date=payload.attendance_date, created=created)


# --- Regularization ---

@router.post("/regularization", response_model=RegularizationResponse)
def submit_regularization(
    payload: RegularizationCreate,
    db: Session = Depends(get_db),
    current_employee: Employee = Depends(get_current_employee),
):
    _assert_self(current_employee, payload.employee_id)
    return RegularizationService(db).submit(
        current_employee,
        attendance_record_id=payload.attendance_record_id,
        reason=payload.reason,
        requested_clock_in=payload.requested_clock_in,
        requested_clock_out=payload.requested_clock_out,
    )


@router.get("/regularizations", response_model=List[RegularizationResponse])
def list_regularizations(
    status: Optional[str] = Query(None),
    employee_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_employee: Employee = Depends(get_current_employee),
):
    service = RegularizationService(db)
    if current_employee.is_hr:
        return service.list_requests(status=status, employee_id=employee_id)
    if employee_id is not None and employee_id != current_employee.id:
        raise AccessDeniedError("You can only view your own requests")
    if employee_id is None and current_employee.direct_reports:
        # Managers see their team's requests
        return service.list_requests(status=status, manager_id=current_employee.id)
    return service.list_requests(status=status, employee_id=current_employee.id)


@router.put("/regularization/{request_id}/action", response_model=RegularizationResponse)
def act_on_regularization(
    request_id: int,
    payload: RegularizationAction,
    db: Session = Depends(get_db),
    current_employee: Employee = Depends(get_current_employee),
):
    return RegularizationService(db).act(
        request_id,
        current_employee,
        status=payload.status,
        comment=payload.comment,
        acting_role=payload.role,
        approver_id=payload.approver_id,
    )
