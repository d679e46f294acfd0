from sqlalchemy import Column, Integer, String, Numeric, DateTime, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from hrms.database import Base


class PayrollRun(Base):
    """One finalized run per (year, month); doubles as the period lock."""
    __tablename__ = "payroll_runs"
    __table_args__ = (
        UniqueConstraint("year", "month", name="uq_payroll_run_period"),
    )

    id = Column(Integer, primary_key=True, index=True)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    notes = Column(String, nullable=True)
    total_employees = Column(Integer, default=0, nullable=False)
    finalized_by = Column(Integer, ForeignKey("employees.id"), nullable=True)
    run_date = Column(DateTime(timezone=True), server_default=func.now())

    items = relationship("PayrollItem", back_populates="run", cascade="all, delete-orphan")


class PayrollItem(Base):
    __tablename__ = "payroll_items"
    __table_args__ = (
        UniqueConstraint("employee_id", "year", "month", name="uq_payroll_item_employee_period"),
    )

    id = Column(Integer, primary_key=True, index=True)
    run_id = Column(Integer, ForeignKey("payroll_runs.id"), nullable=False, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)

    total_working_days = Column(Integer, nullable=False)
    present_days = Column(Numeric(6, 2), default=0)
    paid_leave_days = Column(Numeric(6, 2), default=0)
    unpaid_leave_days = Column(Numeric(6, 2), default=0)
    absent_days = Column(Numeric(6, 2), default=0)
    total_unpaid_days = Column(Numeric(6, 2), default=0)

    monthly_salary = Column(Numeric(12, 2), nullable=False)
    gross_salary = Column(Numeric(12, 2), nullable=False)
    daily_rate = Column(Numeric(12, 2), nullable=False)
    unpaid_deduction_amount = Column(Numeric(12, 2), nullable=False)
    net_salary = Column(Numeric(12, 2), nullable=False)

    meta_json = Column(Text, nullable=True)  # {"details": [...]} day-level breakdown
    run_date = Column(DateTime(timezone=True), server_default=func.now())

    run = relationship("PayrollRun", back_populates="items")
    employee = relationship("Employee")

    @property
    def employee_code(self):
        return self.employee.employee_code if self.employee else None

    @property
    def employee_name(self):
        return self.employee.full_name if self.employee else None
