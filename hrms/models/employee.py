"""
Employee Model with role-based permissions.
Referenced (never owned) by attendance, leave, WFH and payroll records.
"""
from sqlalchemy import Column, Integer, String, Enum, Date, Time, Numeric, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from hrms.database import Base


class EmployeeRole(str, enum.Enum):
    """
    Roles as seen by the approval workflow and payroll.

    - SUPER_ADMIN / ADMIN: everything HR can do, plus manager-level rights
    - HR: final approval stage for leave and attendance corrections
    - PAYROLL: payroll preview and finalize
    - MANAGER: first-line approval for direct reports
    - EMPLOYEE: self-service access
    """
    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    HR = "HR"
    PAYROLL = "PAYROLL"
    MANAGER = "MANAGER"
    EMPLOYEE = "EMPLOYEE"


class Gender(str, enum.Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"


class EmploymentStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    employee_code = Column(String, unique=True, index=True, nullable=False)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=True)
    email = Column(String, unique=True, index=True, nullable=True)
    gender = Column(Enum(Gender), nullable=True)

    role = Column(Enum(EmployeeRole), default=EmployeeRole.EMPLOYEE, nullable=False)
    reporting_manager_id = Column(Integer, ForeignKey("employees.id"), nullable=True, index=True)
    location_id = Column(Integer, ForeignKey("locations.id"), nullable=True)

    # Shift window, local wall-clock time
    shift_start_time = Column(Time, nullable=True)
    shift_end_time = Column(Time, nullable=True)

    # Compensation
    monthly_salary = Column(Numeric(12, 2), nullable=True)
    base_salary = Column(Numeric(12, 2), nullable=True)
    allowance_housing = Column(Numeric(12, 2), nullable=True)
    allowance_transport = Column(Numeric(12, 2), nullable=True)
    allowance_medical = Column(Numeric(12, 2), nullable=True)
    bank_name = Column(String, nullable=True)
    bank_account_number = Column(String, nullable=True)  # Fernet-encrypted

    date_of_joining = Column(Date, nullable=True)
    employment_status = Column(Enum(EmploymentStatus), default=EmploymentStatus.ACTIVE, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    location = relationship("Location", back_populates="employees")
    reporting_manager = relationship("Employee", remote_side=[id], back_populates="direct_reports")
    direct_reports = relationship("Employee", back_populates="reporting_manager")

    def __repr__(self):
        return f"<Employee {self.employee_code} ({self.role.value})>"

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)

    @property
    def is_active(self) -> bool:
        return self.employment_status == EmploymentStatus.ACTIVE

    @property
    def is_hr(self) -> bool:
        """HR authority: final approval stage."""
        return self.role in [EmployeeRole.HR, EmployeeRole.ADMIN, EmployeeRole.SUPER_ADMIN]

    @property
    def is_admin(self) -> bool:
        return self.role in [EmployeeRole.ADMIN, EmployeeRole.SUPER_ADMIN]

    @property
    def can_manage(self) -> bool:
        """Check if the employee can act at the manager approval stage."""
        return self.role in [EmployeeRole.MANAGER, EmployeeRole.ADMIN, EmployeeRole.SUPER_ADMIN]
