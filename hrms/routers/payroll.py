from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from hrms.database import get_db
from hrms.dependencies import get_current_employee, require_payroll
from hrms.models.employee import Employee
from hrms.schemas.payroll import FinalizeRequest, FinalizeResponse, PayrollItemResponse, PayrollPreviewResponse
from hrms.services.payroll_service import PayrollService

router = APIRouter(prefix="/payroll", tags=["payroll"])


@router.get("/preview", response_model=PayrollPreviewResponse)
def preview_payroll(
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    db: Session = Depends(get_db),
    current_employee: Employee = Depends(require_payroll()),
):
    return PayrollService(db).preview(year, month)


@router.post("/finalize", response_model=FinalizeResponse)
def finalize_payroll(
    payload: FinalizeRequest,
    db: Session = Depends(get_db),
    current_employee: Employee = Depends(require_payroll()),
):
    return PayrollService(db).finalize(payload.year, payload.month, current_employee, notes=payload.notes)


@router.get("/me", response_model=List[PayrollItemResponse])
def my_payroll(
    db: Session = Depends(get_db),
    current_employee: Employee = Depends(get_current_employee),
):
    return PayrollService(db).items_for_employee(current_employee.id)
