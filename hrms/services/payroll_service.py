"""
Payroll Service Layer

Turns a month of attendance, approved leave and holidays into per-employee
pay. `preview` computes without persisting; `finalize` re-runs the same
computation and stores one immutable PayrollItem per employee under a
PayrollRun that locks the period.

    daily_rate              = round2(monthly_salary / total_working_days)
    unpaid_deduction_amount = round2(daily_rate * total_unpaid_days)
    net_salary              = monthly_salary - unpaid_deduction_amount

All rounding is ROUND_HALF_UP to 2 decimal places.
"""
import enum
import json
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError

from hrms.core.exceptions import AlreadyFinalizedError, ValidationError
from hrms.models.approval import RequestStatus
from hrms.models.attendance import AttendanceRecord, AttendanceStatus
from hrms.models.employee import Employee, EmploymentStatus
from hrms.models.leave_request import LeaveRequest
from hrms.models.payroll import PayrollItem, PayrollRun
from hrms.services.audit import AuditService
from hrms.services.base import BaseService
from hrms.services.work_calendar import WorkCalendar, country_code_for, iter_days, month_bounds

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0")
ONE = Decimal("1")
HALF = Decimal("0.5")


def _quantize(value) -> Decimal:
    return Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


class DayType(str, enum.Enum):
    WEEKEND = "WEEKEND"
    HOLIDAY = "HOLIDAY"
    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    ABSENT_NO_RECORD = "ABSENT_NO_RECORD"
    PAID_LEAVE = "PAID_LEAVE"
    UNPAID_LEAVE = "UNPAID_LEAVE"


def validate_period(year: int, month: int):
    if not 1 <= month <= 12:
        raise ValidationError("Invalid month", details={"month": "Must be between 1 and 12"})
    if not 2000 <= year <= 2100:
        raise ValidationError("Invalid year", details={"year": "Must be between 2000 and 2100"})


class PayrollService(BaseService):
    def __init__(self, db, work_calendar: Optional[WorkCalendar] = None):
        super().__init__(db)
        self.calendar = work_calendar or WorkCalendar(db)

    def compute_employee(self, employee: Employee, year: int, month: int) -> Dict[str, Any]:
        start, end = month_bounds(year, month)
        country = country_code_for(employee)
        holidays = self.calendar.holidays_between(country, start, end)

        records = {
            r.attendance_date: r for r in self.db.query(AttendanceRecord).filter(
                AttendanceRecord.employee_id == employee.id,
                AttendanceRecord.attendance_date >= start,
                AttendanceRecord.attendance_date <= end,
            ).all()
        }
        leave_by_day = {}
        approved = self.db.query(LeaveRequest).filter(
            LeaveRequest.employee_id == employee.id,
            LeaveRequest.status == RequestStatus.APPROVED.value,
            LeaveRequest.start_date <= end,
            LeaveRequest.end_date >= start,
        ).all()
        for leave in approved:
            for day in iter_days(max(leave.start_date, start), min(leave.end_date, end)):
                leave_by_day[day] = leave

        working_days = 0
        present = paid_leave = unpaid_leave = absent = ZERO
        details = []

        for day in iter_days(start, end):
            entry = {"date": day.isoformat()}
            details.append(entry)

            if self.calendar.is_weekend(day):
                entry["type"] = DayType.WEEKEND.value
                continue
            if day in holidays:
                entry["type"] = DayType.HOLIDAY.value
                entry["holiday_name"] = holidays[day]
                continue

            working_days += 1
            record = records.get(day)
            leave = leave_by_day.get(day)
            if record is not None:
                entry["attendance_status"] = record.status

            if leave is not None:
                leave_type = leave.leave_type
                portion = HALF if leave.is_half_day else ONE
                entry["leave_code"] = leave_type.code
                entry["leave_name"] = leave_type.name
                if leave_type.is_paid:
                    entry["type"] = DayType.PAID_LEAVE.value
                    paid_leave += portion
                else:
                    entry["type"] = DayType.UNPAID_LEAVE.value
                    unpaid_leave += portion
                if leave.is_half_day:
                    # The other half is judged from attendance
                    entry["half_day_session"] = leave.half_day_session
                    if record is not None and record.status == AttendanceStatus.PRESENT.value:
                        present += HALF
                    else:
                        absent += HALF
                continue

            if record is None:
                entry["type"] = DayType.ABSENT_NO_RECORD.value
                absent += ONE
            elif record.status == AttendanceStatus.PRESENT.value:
                entry["type"] = DayType.PRESENT.value
                present += ONE
            else:
                entry["type"] = DayType.ABSENT.value
                if record.absence_reason:
                    entry["absence_reason"] = record.absence_reason
                absent += ONE

        monthly_salary = _quantize(employee.monthly_salary)
        total_unpaid = unpaid_leave + absent
        daily_rate = _quantize(monthly_salary / working_days) if working_days else ZERO
        deduction = _quantize(daily_rate * total_unpaid)
        net_salary = _quantize(max(monthly_salary - deduction, ZERO))

        return {
            "employee_id": employee.id,
            "employee_code": employee.employee_code,
            "employee_name": employee.full_name,
            "year": year,
            "month": month,
            "monthly_salary": monthly_salary,
            "gross_salary": monthly_salary,
            "total_working_days": working_days,
            "present_days": present,
            "paid_leave_days": paid_leave,
            "unpaid_leave_days": unpaid_leave,
            "absent_days": absent,
            "total_unpaid_days": total_unpaid,
            "daily_rate": daily_rate,
            "unpaid_deduction_amount": deduction,
            "net_salary": net_salary,
            "meta_json": json.dumps({"details": details}),
        }

    def preview(self, year: int, month: int) -> Dict[str, Any]:
        validate_period(year, month)
        employees = self.db.query(Employee).filter(
            Employee.employment_status == EmploymentStatus.ACTIVE
        ).order_by(Employee.employee_code).all()

        items, skipped = [], []
        for employee in employees:
            if employee.monthly_salary is None or employee.monthly_salary <= 0:
                skipped.append({
                    "employee_id": employee.id,
                    "employee_code": employee.employee_code,
                    "reason": "Monthly salary not configured",
                })
                continue
            items.append(self.compute_employee(employee, year, month))

        if skipped:
            self.log_warning(f"Payroll {year}-{month:02d}: skipped {len(skipped)} employees without salary")
        return {
            "year": year,
            "month": month,
            "total_employees": len(items),
            "items": items,
            "skipped": skipped,
        }

    def is_finalized(self, year: int, month: int) -> bool:
        return self.db.query(PayrollRun.id).filter(
            PayrollRun.year == year, PayrollRun.month == month
        ).first() is not None

    def finalize(self, year: int, month: int, actor: Employee, notes: Optional[str] = None) -> Dict[str, Any]:
        validate_period(year, month)
        if self.is_finalized(year, month):
            raise AlreadyFinalizedError(year, month)

        result = self.preview(year, month)
        run = PayrollRun(
            year=year,
            month=month,
            notes=notes,
            total_employees=len(result["items"]),
            finalized_by=actor.id,
        )
        try:
            self.db.add(run)
            self.db.flush()
            for data in result["items"]:
                fields = {k: v for k, v in data.items() if k not in ("employee_code", "employee_name")}
                self.db.add(PayrollItem(run_id=run.id, **fields))
            AuditService.log(
                self.db,
                action="finalize_payroll",
                entity_type="payroll_run",
                entity_id=run.id,
                actor_id=actor.id,
                actor_role=actor.role,
                details={
                    "year": year,
                    "month": month,
                    "total_employees": run.total_employees,
                    "skipped": [s["employee_id"] for s in result["skipped"]],
                },
            )
            self.db.commit()
        except IntegrityError:
            # Lost the race for the period lock
            self.db.rollback()
            raise AlreadyFinalizedError(year, month)
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(run)
        self.log_info(f"Payroll {year}-{month:02d} finalized", run_id=run.id, total_employees=run.total_employees)
        return {
            "run_id": run.id,
            "year": year,
            "month": month,
            "notes": notes,
            "run_date": run.run_date,
            "total_employees": run.total_employees,
            "skipped": result["skipped"],
        }

    def items_for_employee(self, employee_id: int) -> List[PayrollItem]:
        return self.db.query(PayrollItem).filter(
            PayrollItem.employee_id == employee_id
        ).order_by(PayrollItem.year.desc(), PayrollItem.month.desc()).all()
