from sqlalchemy import Column, Integer, String, Date, Boolean, Numeric, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from hrms.database import Base
from hrms.models.approval import RequestStatus
import enum

class HalfDaySession(str, enum.Enum):
    FIRST_HALF = "FIRST_HALF"
    SECOND_HALF = "SECOND_HALF"

class LeaveRequest(Base):
    __tablename__ = "leave_requests"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    leave_type_id = Column(Integer, ForeignKey("leave_types.id"), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    is_half_day = Column(Boolean, default=False, nullable=False)
    half_day_session = Column(String, nullable=True)
    total_days = Column(Numeric(6, 2), nullable=False)
    reason = Column(String, nullable=False)
    contact_details_during_leave = Column(String, nullable=True)

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
    leave_type = relationship("LeaveType")

    # Flattened for list views
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
    def code(self):
        return self.leave_type.code if self.leave_type else None

    @property
    def leave_type_name(self):
        return self.leave_type.name if self.leave_type else None
