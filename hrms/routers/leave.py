from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from hrms.core.exceptions import AccessDeniedError
from hrms.database import get_db
from hrms.dependencies import Clock, ensure_self_or_hr, get_clock, get_current_employee
from hrms.models.employee import Employee
from hrms.schemas.leave import (
    LeaveActionRequest,
    LeaveBalanceRow,
    LeaveRequestCreate,
    LeaveRequestResponse,
    LeaveRequestUpdate,
    LeaveSubmitResponse,
    LeaveTypeResponse,
)
from hrms.services.leave_service import LeaveService

router = APIRouter(prefix="/leaves", tags=["leave"])


def _submit_response(request, warning: Optional[str]) -> LeaveSubmitResponse:
    response = LeaveSubmitResponse.model_validate(request)
    response.warning = warning
    return response


@router.get("/types", response_model=List[LeaveTypeResponse])
def leave_types(
    db: Session = Depends(get_db),
    current_employee: Employee = Depends(get_current_employee),
):
    return LeaveService(db).leave_types(current_employee)


@router.get("/balance/{employee_id}", response_model=List[LeaveBalanceRow])
def leave_balance(
    employee_id: int,
    year: Optional[int] = Query(None, ge=2000, le=2100),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_employee: Employee = Depends(get_current_employee),
):
    ensure_self_or_hr(current_employee, employee_id)
    return LeaveService(db).balance_summary(employee_id, year or clock().year)


@router.post("/requests", response_model=LeaveSubmitResponse)
def submit_leave(
    payload: LeaveRequestCreate,
    db: Session = Depends(get_db),
    current_employee: Employee = Depends(get_current_employee),
):
    if payload.employee_id is not None and payload.employee_id != current_employee.id:
        raise AccessDeniedError("You can only apply for leave for yourself")
    request, warning = LeaveService(db).submit(
        current_employee,
        leave_type_id=payload.leave_type_id,
        start_date=payload.start_date,
        end_date=payload.end_date,
        reason=payload.reason,
        is_half_day=payload.is_half_day,
        half_day_session=payload.half_day_session,
        contact_details_during_leave=payload.contact_details_during_leave,
    )
    return _submit_response(request, warning)


@router.get("/requests", response_model=List[LeaveRequestResponse])
def list_leave_requests(
    employee_id: Optional[int] = Query(None),
    view: Optional[str] = Query(None),
    approver_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    current_employee: Employee = Depends(get_current_employee),
):
    if view == "hr":
        if not current_employee.is_hr:
            raise AccessDeniedError("HR access required")
    elif view == "manager":
        approver_id = approver_id or current_employee.id
        if approver_id != current_employee.id and not current_employee.is_admin:
            raise AccessDeniedError("You can only view your own team's requests")
    else:
        employee_id = employee_id or current_employee.id
        ensure_self_or_hr(current_employee, employee_id)

    return LeaveService(db).list_requests(
        employee_id=employee_id, view=view, approver_id=approver_id, status=status,
        date_from=date_from, date_to=date_to,
    )


@router.put("/requests/{request_id}", response_model=LeaveSubmitResponse)
def edit_leave(
    request_id: int,
    payload: LeaveRequestUpdate,
    db: Session = Depends(get_db),
    current_employee: Employee = Depends(get_current_employee),
):
    request, warning = LeaveService(db).edit(
        request_id,
        current_employee,
        leave_type_id=payload.leave_type_id,
        start_date=payload.start_date,
        end_date=payload.end_date,
        reason=payload.reason,
        is_half_day=payload.is_half_day,
        half_day_session=payload.half_day_session,
        contact_details_during_leave=payload.contact_details_during_leave,
    )
    return _submit_response(request, warning)


@router.put("/requests/{request_id}/action", response_model=LeaveRequestResponse)
def act_on_leave(
    request_id: int,
    payload: LeaveActionRequest,
    db: Session = Depends(get_db),
    current_employee: Employee = Depends(get_current_employee),
):
    return LeaveService(db).act(
        request_id,
        current_employee,
        decision=payload.action,
        comment=payload.comment,
        acting_role=payload.role,
        approver_id=payload.approver_id,
    )


@router.post("/requests/{request_id}/cancel", response_model=LeaveRequestResponse)
def cancel_leave(
    request_id: int,
    db: Session = Depends(get_db),
    current_employee: Employee = Depends(get_current_employee),
):
    return LeaveService(db).cancel(request_id, current_employee)
