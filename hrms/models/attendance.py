from sqlalchemy import Column, Integer, String, Date, DateTime, Float, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from hrms.database import Base
import enum


class AttendanceStatus(str, enum.Enum):
    PRESENT = "PRESENT"
    ABSENT = "ABSENT"


class WorkLocation(str, enum.Enum):
    ON_SITE = "ON_SITE"
    REMOTE = "REMOTE"


class AbsenceReason(str, enum.Enum):
    LATE_ESCALATION = "LATE_ESCALATION"  # checked in, but too many late arrivals this month
    NO_CHECK_IN = "NO_CHECK_IN"          # created by the absence-marking batch


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"
    __table_args__ = (
        UniqueConstraint("employee_id", "attendance_date", name="uq_attendance_employee_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    attendance_date = Column(Date, nullable=False, index=True)

    clock_in_time = Column(DateTime, nullable=True)
    clock_out_time = Column(DateTime, nullable=True)
    status = Column(String, default=AttendanceStatus.PRESENT.value, nullable=False)
    absence_reason = Column(String, nullable=True)
    is_late = Column(Boolean, default=False, nullable=False)
    work_location = Column(String, nullable=True)
    total_hours = Column(Float, nullable=True)

    check_in_latitude = Column(Float, nullable=True)
    check_in_longitude = Column(Float, nullable=True)
    check_out_latitude = Column(Float, nullable=True)
    check_out_longitude = Column(Float, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    employee = relationship("Employee")

    @property
    def employee_code(self):
        return self.employee.employee_code if self.employee else None

    @property
    def employee_name(self):
        return self.employee.full_name if self.employee else None
