"""
Attendance Tracker

Durable daily record of presence per (employee, date), derived from check-in
and check-out events plus shift, geo-fence, holiday and late-escalation policy.
"""
import math
from datetime import date, datetime, timedelta
from typing import List, Optional
from zoneinfo import ZoneInfo

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError

from hrms.core.config import AttendancePolicy, settings
from hrms.core.exceptions import (
    AccessDeniedError,
    AlreadyCheckedInError,
    AlreadyCheckedOutError,
    NotCheckedInError,
    NotFoundError,
    OutsideGeoFenceError,
    ValidationError,
)
from hrms.models.approval import RequestStatus
from hrms.models.attendance import AbsenceReason, AttendanceRecord, AttendanceStatus, WorkLocation
from hrms.models.employee import Employee, EmploymentStatus
from hrms.models.leave_request import LeaveRequest
from hrms.models.leave_type import LeaveType
from hrms.models.wfh_request import WFHRequest
from hrms.services.base import BaseService
from hrms.services.work_calendar import WorkCalendar, country_code_for

EARTH_RADIUS_KM = 6371


def haversine_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points in meters."""
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (math.sin(delta_lat / 2) ** 2 +
         math.cos(lat1_rad) * math.cos(lat2_rad) *
         math.sin(delta_lon / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c * 1000


def hours_between(start: datetime, end: datetime) -> float:
    return round(max((end - start).total_seconds(), 0) / 3600, 2)


def to_local_naive(ts: datetime, tz_name: Optional[str] = None) -> datetime:
    """
    Shift times are naive wall-clock in the office zone. Aware timestamps are
    converted into `tz_name` (the host zone when unset); naive ones are taken as is.
    """
    if ts.tzinfo is None:
        return ts
    zone = ZoneInfo(tz_name) if tz_name else None
    return ts.astimezone(zone).replace(tzinfo=None)


class AttendanceService(BaseService):
    def __init__(self, db, policy: Optional[AttendancePolicy] = None, work_calendar: Optional[WorkCalendar] = None):
        super().__init__(db)
        self.policy = policy or settings.attendance
        self.calendar = work_calendar or WorkCalendar(db, set(self.policy.weekend_days))

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def timezone_for(self, employee: Employee) -> Optional[str]:
        location = employee.location
        if location is not None and location.timezone:
            return location.timezone
        return self.policy.timezone or None

    def local_date(self, employee_id: int, now: datetime) -> date:
        """The calendar day `now` falls on at the employee's office."""
        employee = self.db.get(Employee, employee_id)
        zone = self.timezone_for(employee) if employee else self.policy.timezone or None
        return to_local_naive(now, zone).date()

    def _employee(self, employee_id: int) -> Employee:
        employee = self.db.get(Employee, employee_id)
        if not employee:
            raise NotFoundError(f"Employee {employee_id} not found")
        if employee.employment_status != EmploymentStatus.ACTIVE:
            raise AccessDeniedError("Inactive employees cannot record attendance")
        return employee

    def record_for(self, employee_id: int, day: date) -> Optional[AttendanceRecord]:
        return self.db.query(AttendanceRecord).filter(
            AttendanceRecord.employee_id == employee_id,
            AttendanceRecord.attendance_date == day,
        ).first()

    def has_approved_wfh(self, employee_id: int, day: date) -> bool:
        """An approved WFH request, or approved leave of the WFH type, covers the day."""
        wfh = self.db.query(WFHRequest.id).filter(
            WFHRequest.employee_id == employee_id,
            WFHRequest.status == RequestStatus.APPROVED.value,
            WFHRequest.start_date <= day,
            WFHRequest.end_date >= day,
        ).first()
        if wfh is not None:
            return True
        return self.db.query(LeaveRequest.id).join(LeaveType, LeaveRequest.leave_type_id == LeaveType.id).filter(
            LeaveRequest.employee_id == employee_id,
            LeaveRequest.status == RequestStatus.APPROVED.value,
            LeaveType.code == "WFH",
            LeaveRequest.start_date <= day,
            LeaveRequest.end_date >= day,
        ).first() is not None

    def late_count_before(self, employee_id: int, day: date) -> int:
        """Late arrivals earlier in the same calendar month."""
        month_start = day.replace(day=1)
        return self.db.query(func.count(AttendanceRecord.id)).filter(
            AttendanceRecord.employee_id == employee_id,
            AttendanceRecord.attendance_date >= month_start,
            AttendanceRecord.attendance_date < day,
            AttendanceRecord.is_late.is_(True),
        ).scalar() or 0

    # ------------------------------------------------------------------
    # Policy
    # ------------------------------------------------------------------
    def resolve_work_location(self, employee: Employee, latitude: Optional[float], longitude: Optional[float], day: date) -> str:
        location = employee.location
        if location is None or not location.has_coordinates:
            return WorkLocation.ON_SITE.value
        if latitude is None or longitude is None:
            raise ValidationError(
                "Device location is required",
                details={"device_latitude": "Required", "device_longitude": "Required"},
            )

        radius = location.geo_fence_radius_meters or self.policy.geo_fence_radius_meters
        distance = haversine_meters(latitude, longitude, location.latitude, location.longitude)
        if distance <= radius:
            return WorkLocation.ON_SITE.value
        if self.has_approved_wfh(employee.id, day):
            return WorkLocation.REMOTE.value

        self.log_warning(
            f"Geo-fence rejection for employee {employee.id}",
            distance_meters=round(distance, 1), radius_meters=radius,
        )
        raise OutsideGeoFenceError(distance, radius)

    def is_late(self, employee: Employee, clock_in: datetime, day: date) -> bool:
        if employee.shift_start_time is None:
            return False
        deadline = datetime.combine(day, employee.shift_start_time) + timedelta(minutes=self.policy.late_grace_minutes)
        return to_local_naive(clock_in, self.timezone_for(employee)) > deadline

    def evaluate(self, record: AttendanceRecord, employee: Employee) -> AttendanceRecord:
        """Recompute is_late, status and total_hours from the clock times."""
        day = record.attendance_date

        if record.clock_in_time is None:
            record.is_late = False
            record.status = AttendanceStatus.ABSENT.value
            record.total_hours = None
            return record

        if not self.calendar.is_working_day(country_code_for(employee), day):
            # Weekends and public holidays are never penalised
            record.is_late = False
            record.status = AttendanceStatus.PRESENT.value
            record.absence_reason = None
        else:
            record.is_late = self.is_late(employee, record.clock_in_time, day)
            if record.is_late and self.late_count_before(employee.id, day) >= self.policy.late_absence_threshold:
                record.status = AttendanceStatus.ABSENT.value
                record.absence_reason = AbsenceReason.LATE_ESCALATION.value
            else:
                record.status = AttendanceStatus.PRESENT.value
                record.absence_reason = None

        if record.clock_out_time is not None:
            record.total_hours = hours_between(record.clock_in_time, record.clock_out_time)
        else:
            record.total_hours = None
        return record

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------
    def check_in(self, employee_id: int, latitude: Optional[float], longitude: Optional[float], timestamp: datetime) -> AttendanceRecord:
        employee = self._employee(employee_id)
        timestamp = to_local_naive(timestamp, self.timezone_for(employee))
        day = timestamp.date()

        record = self.record_for(employee_id, day)
        if record is not None and record.clock_in_time is not None:
            raise AlreadyCheckedInError()

        work_location = self.resolve_work_location(employee, latitude, longitude, day)

        if record is None:
            record = AttendanceRecord(employee_id=employee_id, attendance_date=day)
            self.db.add(record)
        record.clock_in_time = timestamp
        record.check_in_latitude = latitude
        record.check_in_longitude = longitude
        record.work_location = work_location
        self.evaluate(record, employee)

        try:
            self.db.commit()
        except IntegrityError:
            # A concurrent check-in won the (employee, date) unique constraint
            self.db.rollback()
            raise AlreadyCheckedInError()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(record)

        if record.absence_reason == AbsenceReason.LATE_ESCALATION.value:
            self.log_warning(
                f"Late check-in escalated to absence for employee {employee_id}",
                attendance_date=day.isoformat(),
            )
        else:
            self.log_info(f"Employee {employee_id} checked in", attendance_date=day.isoformat(), is_late=record.is_late)
        return record

    def check_out(self, employee_id: int, latitude: Optional[float], longitude: Optional[float], timestamp: datetime) -> AttendanceRecord:
        employee = self._employee(employee_id)
        timestamp = to_local_naive(timestamp, self.timezone_for(employee))
        day = timestamp.date()

        record = self.record_for(employee_id, day)
        if record is None or record.clock_in_time is None:
            raise NotCheckedInError()
        if record.clock_out_time is not None:
            raise AlreadyCheckedOutError()
        if timestamp < record.clock_in_time:
            raise ValidationError("Check-out time cannot be before check-in time")

        self.resolve_work_location(employee, latitude, longitude, day)

        record.clock_out_time = timestamp
        record.check_out_latitude = latitude
        record.check_out_longitude = longitude
        record.total_hours = hours_between(record.clock_in_time, timestamp)
        self._commit()
        self.db.refresh(record)
        self.log_info(f"Employee {employee_id} checked out", attendance_date=day.isoformat(), total_hours=record.total_hours)
        return record

    def apply_regularization(self, record_id: int, requested_in: Optional[datetime], requested_out: Optional[datetime]) -> AttendanceRecord:
        """
        Overwrite clock times from an approved correction request.
        Runs inside the approval transaction; the caller commits.
        """
        record = self.db.get(AttendanceRecord, record_id)
        if record is None:
            raise NotFoundError(f"Attendance record {record_id} not found")

        zone = self.timezone_for(record.employee)
        new_in = to_local_naive(requested_in, zone) if requested_in else record.clock_in_time
        new_out = to_local_naive(requested_out, zone) if requested_out else record.clock_out_time
        if new_out is not None and new_in is None:
            raise ValidationError("A clock-out time requires a clock-in time", details={"requested_clock_in": "Required"})
        if new_in is not None and new_out is not None and new_out < new_in:
            raise ValidationError(
                "Clock-out time cannot be before clock-in time",
                details={"requested_clock_out": "Must not be before clock-in"},
            )

        record.clock_in_time = new_in
        record.clock_out_time = new_out
        if new_in is not None:
            record.absence_reason = None
        self.evaluate(record, record.employee)
        self.db.flush()
        return record

    def mark_absentees(self, for_date: date) -> int:
        """
        Batch: an ABSENT/NO_CHECK_IN record for every active employee who has no
        record on a working day and is not on approved full-day leave.
        """
        employees = self.db.query(Employee).filter(
            Employee.employment_status == EmploymentStatus.ACTIVE
        ).all()
        on_leave = {
            row.employee_id for row in self.db.query(LeaveRequest.employee_id).filter(
                LeaveRequest.status == RequestStatus.APPROVED.value,
                LeaveRequest.is_half_day.is_(False),
                LeaveRequest.start_date <= for_date,
                LeaveRequest.end_date >= for_date,
            ).all()
        }
        already_recorded = {
            row.employee_id for row in self.db.query(AttendanceRecord.employee_id).filter(
                AttendanceRecord.attendance_date == for_date
            ).all()
        }

        created = 0
        for employee in employees:
            if employee.id in on_leave or employee.id in already_recorded:
                continue
            if not self.calendar.is_working_day(country_code_for(employee), for_date):
                continue
            self.db.add(AttendanceRecord(
                employee_id=employee.id,
                attendance_date=for_date,
                status=AttendanceStatus.ABSENT.value,
                absence_reason=AbsenceReason.NO_CHECK_IN.value,
                is_late=False,
            ))
            created += 1

        try:
            self.db.commit()
        except IntegrityError:
            # Someone checked in while the batch ran; retrying picks up the rest
            self.db.rollback()
            raise
        self.log_info(f"Marked {created} absentees", attendance_date=for_date.isoformat())
        return created

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def list_records(
        self,
        employee_id: Optional[int] = None,
        employee_code: Optional[str] = None,
        employee_name: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[AttendanceRecord]:
        query = self.db.query(AttendanceRecord).join(Employee, AttendanceRecord.employee_id == Employee.id)
        if employee_id is not None:
            query = query.filter(AttendanceRecord.employee_id == employee_id)
        if employee_code:
            query = query.filter(Employee.employee_code.ilike(f"%{employee_code.strip()}%"))
        if employee_name:
            pattern = f"%{employee_name.strip()}%"
            full_name = Employee.first_name + " " + func.coalesce(Employee.last_name, "")
            query = query.filter(or_(
                Employee.first_name.ilike(pattern),
                Employee.last_name.ilike(pattern),
                full_name.ilike(pattern),
            ))
        if date_from:
            query = query.filter(AttendanceRecord.attendance_date >= date_from)
        if date_to:
            query = query.filter(AttendanceRecord.attendance_date <= date_to)
        return query.order_by(AttendanceRecord.attendance_date.desc(), Employee.employee_code).all()

    def today(self, employee_id: int, day: date) -> Optional[AttendanceRecord]:
        return self.record_for(employee_id, day)
