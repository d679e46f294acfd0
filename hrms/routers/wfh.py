from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from hrms.core.exceptions import AccessDeniedError
from hrms.database import get_db
from hrms.dependencies import get_current_employee, require_admin
from hrms.models.employee import Employee
from hrms.schemas.wfh import WFHAction, WFHRequestCreate, WFHRequestResponse
from hrms.services.wfh_service import WFHService

router = APIRouter(prefix="/wfh", tags=["wfh"])


@router.post("/request", response_model=WFHRequestResponse)
def submit_wfh(
    payload: WFHRequestCreate,
    db: Session = Depends(get_db),
    current_employee: Employee = Depends(get_current_employee),
):
    if payload.employee_id is not None and payload.employee_id != current_employee.id:
        raise AccessDeniedError("You can only request WFH for yourself")
    return WFHService(db).submit(
        current_employee,
        reason=payload.reason,
        start_date=payload.start_date,
        end_date=payload.end_date,
        request_date=payload.request_date,
    )


@router.get("/my-requests", response_model=List[WFHRequestResponse])
def my_wfh_requests(
    db: Session = Depends(get_db),
    current_employee: Employee = Depends(get_current_employee),
):
    return WFHService(db).list_requests(employee_id=current_employee.id)


@router.get("", response_model=List[WFHRequestResponse])
def list_wfh(
    status: Optional[str] = Query(None),
    employee_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_employee: Employee = Depends(require_admin()),
):
    return WFHService(db).list_requests(employee_id=employee_id, status=status)


@router.put("/{request_id}/action", response_model=WFHRequestResponse)
def act_on_wfh(
    request_id: int,
    payload: WFHAction,
    db: Session = Depends(get_db),
    current_employee: Employee = Depends(get_current_employee),
):
    return WFHService(db).act(
        request_id,
        current_employee,
        status=payload.status,
        admin_comment=payload.admin_comment,
        approved_by=payload.approved_by,
    )
