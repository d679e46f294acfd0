from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from hrms.database import Base
from hrms.models.approval import RequestStatus


class AttendanceRegularizationRequest(Base):
    __tablename__ = "attendance_regularization_requests"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    attendance_record_id = Column(Integer, ForeignKey("attendance_records.id"), nullable=False, index=True)

    # Snapshot of the record at submission time
    original_clock_in = Column(DateTime, nullable=True)
    original_clock_out = Column(DateTime, nullable=True)
    requested_clock_in = Column(DateTime, nullable=True)
    requested_clock_out = Column(DateTime, nullable=True)
    reason = Column(String, nullable=False)

    status = Column(String, default=RequestStatus.PENDING.value, nullable=False, index=True)
    approval_stage = Column(String, nullable=True, index=True)

    manager_comment = Column(String, nullable=True)
    manager_approver_id = Column(Integer, ForeignKey("employees.id"), nullable=True)
    manager_action_at = Column(DateTime(timezone=True), nullable=True)
    hr_comment = Column(String, nullable=True)
    hr_approver_id = Column(Integer, ForeignKey("employees.id"), nullable=True)
    hr_action_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    employee = relationship("Employee", foreign_keys=[employee_id])
    attendance_record = relationship("AttendanceRecord")

    @property
    def employee_code(self):
        return self.employee.employee_code if self.employee else None

    @property
    def first_name(self):
        return self.employee.first_name if self.employee else None

    @property
    def last_name(self):
        return self.employee.last_name if self.employee else None

    @property
    def attendance_date(self):
        return self.attendance_record.attendance_date if self.attendance_record else None
