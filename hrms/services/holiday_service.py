from datetime import date
from typing import List, Optional

from sqlalchemy.exc import IntegrityError

from hrms.core.exceptions import NotFoundError, StateConflict, ValidationError
from hrms.models.employee import Employee
from hrms.models.holiday import Holiday
from hrms.services.base import BaseService
from hrms.services.work_calendar import country_code_for, month_bounds


class HolidayService(BaseService):
    def list_holidays(self, country_code: str, year: Optional[int] = None, month: Optional[int] = None) -> List[Holiday]:
        query = self.db.query(Holiday).filter(Holiday.country_code == country_code.upper())
        if year and month:
            start, end = month_bounds(year, month)
            query = query.filter(Holiday.holiday_date >= start, Holiday.holiday_date <= end)
        elif year:
            query = query.filter(Holiday.holiday_date >= date(year, 1, 1), Holiday.holiday_date <= date(year, 12, 31))
        elif month:
            raise ValidationError("month requires year", details={"year": "Required when month is given"})
        return query.order_by(Holiday.holiday_date).all()

    def default_country(self, employee_id: int) -> str:
        employee = self.db.get(Employee, employee_id)
        if not employee:
            raise NotFoundError(f"Employee {employee_id} not found")
        return country_code_for(employee)

    def create_holiday(self, country_code: str, holiday_date: date, name: str) -> Holiday:
        holiday = Holiday(country_code=country_code.upper(), holiday_date=holiday_date, name=name)
        self.db.add(holiday)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise StateConflict(f"A holiday already exists for {country_code.upper()} on {holiday_date}")
        self.db.refresh(holiday)
        self.log_info(f"Holiday {name} added for {holiday.country_code} on {holiday_date}")
        return holiday
