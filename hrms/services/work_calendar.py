"""
Working-day calendar: weekends from policy, public holidays per country.

Shared by the attendance tracker (no lateness/absence on non-working days)
and the payroll engine (working-day count per month).
"""
import calendar
from datetime import date, timedelta
from typing import Dict, Iterator, Optional, Set

from sqlalchemy.orm import Session

from hrms.core.config import settings
from hrms.models.employee import Employee
from hrms.models.holiday import Holiday


def month_bounds(year: int, month: int) -> tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def iter_days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def inclusive_days(start: date, end: date) -> int:
    return (end - start).days + 1


def country_code_for(employee: Employee) -> str:
    if employee.location and employee.location.country_code:
        return employee.location.country_code.upper()
    return settings.holidays.default_country_code


class WorkCalendar:
    def __init__(self, db: Session, weekend_days: Optional[Set[int]] = None):
        self.db = db
        self.weekend_days = set(weekend_days if weekend_days is not None else settings.attendance.weekend_days)
        self._cache: Dict[tuple, Dict[date, str]] = {}

    def is_weekend(self, day: date) -> bool:
        return day.weekday() in self.weekend_days

    def holidays_between(self, country_code: str, start: date, end: date) -> Dict[date, str]:
        key = (country_code, start, end)
        if key not in self._cache:
            rows = self.db.query(Holiday).filter(
                Holiday.country_code == country_code,
                Holiday.holiday_date >= start,
                Holiday.holiday_date <= end,
            ).all()
            self._cache[key] = {h.holiday_date: h.name for h in rows}
        return self._cache[key]

    def holiday_name(self, country_code: str, day: date) -> Optional[str]:
        return self.holidays_between(country_code, day, day).get(day)

    def is_working_day(self, country_code: str, day: date) -> bool:
        return not self.is_weekend(day) and self.holiday_name(country_code, day) is None

    def working_days_in_month(self, country_code: str, year: int, month: int) -> int:
        start, end = month_bounds(year, month)
        holidays = self.holidays_between(country_code, start, end)
        return sum(
            1 for day in iter_days(start, end)
            if not self.is_weekend(day) and day not in holidays
        )
