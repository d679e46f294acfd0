# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import (
    location, employee, attendance,
    leave_type, leave_balance, leave_request,
    regularization, wfh_request, holiday,
    payroll, notification, audit_log
)

# Explicit class exports for cleaner imports
from .location import Location
from .employee import Employee, EmployeeRole
from .attendance import AttendanceRecord
from .leave_type import LeaveType
from .leave_balance import LeaveBalance
from .leave_request import LeaveRequest
from .regularization import AttendanceRegularizationRequest
from .wfh_request import WFHRequest
from .holiday import Holiday
from .payroll import PayrollRun, PayrollItem

__all__ = [
    "Location",
    "Employee",
    "EmployeeRole",
    "AttendanceRecord",
    "LeaveType",
    "LeaveBalance",
    "LeaveRequest",
    "AttendanceRegularizationRequest",
    "WFHRequest",
    "Holiday",
    "PayrollRun",
    "PayrollItem",
]
