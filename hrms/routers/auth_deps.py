"""
Role-based access dependencies.
Resolve the calling employee from the bearer token and gate endpoints by role.
"""
import logging
from typing import Callable, List

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from hrms.core.config import settings
from hrms.core.exceptions import AccessDeniedError, AuthenticationError
from hrms.database import get_db
from hrms.models.employee import Employee, EmployeeRole
from hrms.services import auth as auth_service

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_employee(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Employee:
    """
    Extracts and validates the current employee from the JWT.
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Not authenticated")

    payload = auth_service.decode_access_token(credentials.credentials)
    if payload is None:
        logger.warning("Authentication failed: Invalid token")
        raise AuthenticationError()
    if payload.get("error") == "TOKEN_EXPIRED":
        logger.info("Authentication failed: Token expired")
        raise AuthenticationError("TOKEN_EXPIRED", error_code="TOKEN_EXPIRED")
    if payload.get("type") != "access":
        logger.warning("Authentication failed: Invalid token type")
        raise AuthenticationError("Invalid token type")

    subject = payload.get("sub")
    try:
        employee_id = int(subject)
    except (TypeError, ValueError):
        logger.warning("Authentication failed: Missing or malformed subject in token")
        raise AuthenticationError("Missing subject in token")

    employee = db.get(Employee, employee_id)
    if employee is None:
        logger.warning(f"Authentication failed: Employee {employee_id} not found")
        raise AuthenticationError("Employee not found")
    if not employee.is_active:
        logger.warning(f"Authentication failed: Employee {employee_id} is inactive")
        raise AccessDeniedError("Employee is inactive")
    # Picked up by the access log
    request.state.employee_id = employee.id
    return employee


def require_role(allowed_roles: List[EmployeeRole]) -> Callable:
    """
    Dependency factory that checks the caller has one of the allowed roles.

    Usage:
        @router.post("/finalize")
        def finalize(user: Employee = Depends(require_role([EmployeeRole.PAYROLL]))):
            ...
    """
    def role_checker(current_employee: Employee = Depends(get_current_employee)) -> Employee:
        if current_employee.role not in allowed_roles:
            raise AccessDeniedError(f"Access denied. Required roles: {[r.value for r in allowed_roles]}")
        return current_employee
    return role_checker


def require_hr():
    return require_role([EmployeeRole.SUPER_ADMIN, EmployeeRole.ADMIN, EmployeeRole.HR])


def require_admin():
    return require_role([EmployeeRole.SUPER_ADMIN, EmployeeRole.ADMIN])


def require_payroll():
    return require_role([EmployeeRole(r) for r in settings.payroll_roles])


def ensure_self_or_hr(current_employee: Employee, employee_id: int):
    """Employees see their own data; HR and admins see everyone's."""
    if current_employee.id != employee_id and not current_employee.is_hr:
        raise AccessDeniedError("You can only access your own records")
