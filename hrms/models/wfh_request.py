from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from hrms.database import Base
from hrms.models.approval import RequestStatus


class WFHRequest(Base):
    __tablename__ = "wfh_requests"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    total_days = Column(Integer, nullable=False)
    reason = Column(String, nullable=False)

    status = Column(String, default=RequestStatus.PENDING.value, nullable=False, index=True)
    approval_stage = Column(String, nullable=True)
    admin_comment = Column(String, nullable=True)
    approved_by = Column(Integer, ForeignKey("employees.id"), nullable=True)
    action_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    employee = relationship("Employee", foreign_keys=[employee_id])

    @property
    def employee_code(self):
        return self.employee.employee_code if self.employee else None

    @property
    def first_name(self):
        return self.employee.first_name if self.employee else None

    @property
    def last_name(self):
        return self.employee.last_name if self.employee else None
