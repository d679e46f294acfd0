from sqlalchemy import Column, Integer, Numeric, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from hrms.database import Base

class LeaveBalance(Base):
    __tablename__ = "leave_balances"
    __table_args__ = (
        UniqueConstraint("employee_id", "leave_type_id", "year", name="uq_leave_balance_employee_type_year"),
    )

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    leave_type_id = Column(Integer, ForeignKey("leave_types.id"), nullable=False, index=True)
    year = Column(Integer, nullable=False)

    opening_balance_days = Column(Numeric(6, 2), default=0, nullable=False)
    carry_forward_days = Column(Numeric(6, 2), default=0, nullable=False)
    accrued_days = Column(Numeric(6, 2), default=0, nullable=False)
    used_days = Column(Numeric(6, 2), default=0, nullable=False)
    pending_approval_days = Column(Numeric(6, 2), default=0, nullable=False)

    leave_type = relationship("LeaveType")
