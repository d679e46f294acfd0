from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from hrms.core.config import settings
from hrms.database import get_db
from hrms.dependencies import ensure_self_or_hr, get_current_employee, require_hr
from hrms.models.employee import Employee
from hrms.schemas.holiday import DefaultCountryResponse, HolidayCreate, HolidayResponse
from hrms.services.holiday_service import HolidayService

router = APIRouter(prefix="/holidays", tags=["holidays"])


@router.get("", response_model=List[HolidayResponse])
def list_holidays(
    country_code: Optional[str] = Query(None, min_length=2, max_length=2),
    year: Optional[int] = Query(None, ge=2000, le=2100),
    month: Optional[int] = Query(None, ge=1, le=12),
    db: Session = Depends(get_db),
    current_employee: Employee = Depends(get_current_employee),
):
    return HolidayService(db).list_holidays(
        country_code or settings.holidays.default_country_code, year=year, month=month
    )


@router.get("/default-country/{employee_id}", response_model=DefaultCountryResponse)
def default_country(
    employee_id: int,
    db: Session = Depends(get_db),
    current_employee: Employee = Depends(get_current_employee),
):
    ensure_self_or_hr(current_employee, employee_id)
    country_code = HolidayService(db).default_country(employee_id)
    return DefaultCountryResponse(employee_id=employee_id, country_code=country_code)


@router.post("", response_model=HolidayResponse)
def create_holiday(
    payload: HolidayCreate,
    db: Session = Depends(get_db),
    current_employee: Employee = Depends(require_hr()),
):
    return HolidayService(db).create_holiday(payload.country_code, payload.holiday_date, payload.name)
