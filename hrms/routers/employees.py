from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from hrms.database import get_db
from hrms.dependencies import ensure_self_or_hr, get_current_employee, require_hr
from hrms.models.employee import Employee
from hrms.schemas.employee import EmployeeCreate, EmployeeResponse, EmployeeUpdate
from hrms.services.employee_service import EmployeeService

router = APIRouter(prefix="/employees", tags=["employees"])


@router.get("", response_model=List[EmployeeResponse])
def list_employees(
    search: Optional[str] = Query(None),
    active_only: bool = Query(False),
    db: Session = Depends(get_db),
    current_employee: Employee = Depends(require_hr()),
):
    return EmployeeService(db).list_employees(search=search, active_only=active_only)


@router.get("/{employee_id}", response_model=EmployeeResponse)
def get_employee(
    employee_id: int,
    db: Session = Depends(get_db),
    current_employee: Employee = Depends(get_current_employee),
):
    ensure_self_or_hr(current_employee, employee_id)
    return EmployeeService(db).get(employee_id)


@router.post("", response_model=EmployeeResponse)
def create_employee(
    payload: EmployeeCreate,
    db: Session = Depends(get_db),
    current_employee: Employee = Depends(require_hr()),
):
    return EmployeeService(db).create_employee(payload.model_dump(), current_employee)


@router.put("/{employee_id}", response_model=EmployeeResponse)
def update_employee(
    employee_id: int,
    payload: EmployeeUpdate,
    db: Session = Depends(get_db),
    current_employee: Employee = Depends(require_hr()),
):
    return EmployeeService(db).update_employee(employee_id, payload.model_dump(exclude_unset=True), current_employee)
