from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from hrms.core.exceptions import NotFoundError, StateConflict, ValidationError
from hrms.core.security import encrypt_data
from hrms.models.employee import Employee, EmploymentStatus
from hrms.models.location import Location
from hrms.services.audit import AuditService
from hrms.services.base import BaseService

# Fields that never go into the audit trail in clear text
SENSITIVE_FIELDS = {"bank_account_number"}
MONEY_FIELDS = {"monthly_salary", "base_salary", "allowance_housing", "allowance_transport", "allowance_medical"}


class EmployeeService(BaseService):
    """HR-owned master data: the engine reads employees, it does not manage their lifecycle."""

    def get(self, employee_id: int) -> Employee:
        employee = self.db.get(Employee, employee_id)
        if not employee:
            raise NotFoundError(f"Employee {employee_id} not found")
        return employee

    def list_employees(self, search: Optional[str] = None, active_only: bool = False) -> List[Employee]:
        query = self.db.query(Employee)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(
                Employee.employee_code.ilike(pattern),
                Employee.first_name.ilike(pattern),
                Employee.last_name.ilike(pattern),
                Employee.email.ilike(pattern),
            ))
        if active_only:
            query = query.filter(Employee.employment_status == EmploymentStatus.ACTIVE)
        return query.order_by(Employee.employee_code).all()

    def _check_references(self, data: Dict[str, Any], employee_id: Optional[int] = None):
        manager_id = data.get("reporting_manager_id")
        if manager_id is not None:
            if employee_id is not None and manager_id == employee_id:
                raise ValidationError("An employee cannot report to themselves", details={"reporting_manager_id": "Invalid"})
            if not self.db.get(Employee, manager_id):
                raise ValidationError("Reporting manager not found", details={"reporting_manager_id": "Unknown employee"})
        location_id = data.get("location_id")
        if location_id is not None and not self.db.get(Location, location_id):
            raise ValidationError("Location not found", details={"location_id": "Unknown location"})

    def _apply(self, employee: Employee, data: Dict[str, Any]):
        for field, value in data.items():
            if field == "bank_account_number" and value:
                value = encrypt_data(value)
            elif field in MONEY_FIELDS and value is not None:
                value = Decimal(str(value))
            setattr(employee, field, value)

    def _audit_view(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return {k: ("***" if k in SENSITIVE_FIELDS and v else v) for k, v in data.items()}

    def create_employee(self, data: Dict[str, Any], actor: Employee) -> Employee:
        self._check_references(data)
        employee = Employee()
        self._apply(employee, data)
        try:
            self.db.add(employee)
            self.db.flush()
            AuditService.log(
                self.db,
                action="create_employee",
                entity_type="employee",
                entity_id=employee.id,
                actor_id=actor.id,
                actor_role=actor.role,
                details=self._audit_view(data),
            )
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise StateConflict("An employee with this code or email already exists", error_code="DUPLICATE_EMPLOYEE")
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(employee)
        self.log_info(f"Employee {employee.employee_code} created", actor_id=actor.id)
        return employee

    def update_employee(self, employee_id: int, data: Dict[str, Any], actor: Employee) -> Employee:
        employee = self.get(employee_id)
        self._check_references(data, employee_id)
        before = {k: getattr(employee, k) for k in data}
        self._apply(employee, data)
        try:
            AuditService.log(
                self.db,
                action="update_employee",
                entity_type="employee",
                entity_id=employee.id,
                actor_id=actor.id,
                actor_role=actor.role,
                details={"fields": sorted(data)},
                before_state=self._audit_view(before),
                after_state=self._audit_view(data),
            )
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise StateConflict("An employee with this code or email already exists", error_code="DUPLICATE_EMPLOYEE")
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(employee)
        self.log_info(f"Employee {employee.employee_code} updated", fields=sorted(data))
        return employee
