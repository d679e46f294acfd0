from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import or_

from hrms.core.config import LeavePolicySettings, settings
from hrms.core.exceptions import (
    AccessDeniedError,
    NotFoundError,
    NotPendingError,
    OverlappingLeaveError,
    ValidationError,
    WFHLimitExceededError,
)
from hrms.models.approval import RequestStatus
from hrms.models.employee import Employee
from hrms.models.leave_request import HalfDaySession, LeaveRequest
from hrms.models.leave_type import GenderApplicability, LeaveType
from hrms.services.approval_handlers import LeaveApprovalHandler
from hrms.services.approval_workflow import ApprovalWorkflow
from hrms.services.audit import AuditService
from hrms.services.base import BaseService
from hrms.services.leave_ledger import LeaveLedger, available_days, to_days
from hrms.services.work_calendar import inclusive_days

HALF_DAY = Decimal("0.5")
WFH_CODE = "WFH"
ACTIVE_STATUSES = (RequestStatus.PENDING.value, RequestStatus.APPROVED.value)


def compute_total_days(start_date: date, end_date: date, is_half_day: bool) -> Decimal:
    """Inclusive calendar days; a half day is 0.5 and must start and end on the same date."""
    if end_date < start_date:
        raise ValidationError("End date cannot be before start date", details={"end_date": "Must be on or after start_date"})
    if is_half_day:
        if start_date != end_date:
            raise ValidationError(
                "A half-day leave must start and end on the same date",
                details={"end_date": "Must equal start_date for a half day"},
            )
        return HALF_DAY
    return Decimal(inclusive_days(start_date, end_date))


def applies_to(leave_type: LeaveType, employee: Employee) -> bool:
    applicability = leave_type.gender_applicability or GenderApplicability.ALL.value
    if applicability == GenderApplicability.ALL.value:
        return True
    return employee.gender is not None and employee.gender.value == applicability


class LeaveService(BaseService):
    def __init__(self, db, ledger: Optional[LeaveLedger] = None, policy: Optional[LeavePolicySettings] = None):
        super().__init__(db)
        self.policy = policy or settings.leave
        self.ledger = ledger or LeaveLedger(db, allow_negative_balance=self.policy.allow_negative_balance)
        self.workflow = ApprovalWorkflow(db, LeaveApprovalHandler(db, self.ledger))

    # ------------------------------------------------------------------
    # Reference data
    # ------------------------------------------------------------------
    def leave_types(self, employee: Optional[Employee] = None) -> List[LeaveType]:
        types = self.db.query(LeaveType).filter(LeaveType.is_active.is_(True)).order_by(LeaveType.id).all()
        if employee is None:
            return types
        return [lt for lt in types if applies_to(lt, employee)]

    def _employee(self, employee_id: int) -> Employee:
        employee = self.db.get(Employee, employee_id)
        if not employee:
            raise NotFoundError(f"Employee {employee_id} not found")
        return employee

    def balance_summary(self, employee_id: int, year: int) -> List[dict]:
        """Ledger rows for the year, gender-filtered for presentation."""
        employee = self._employee(employee_id)
        rows = []
        for balance in self.ledger.balances_for(employee_id, year):
            leave_type = balance.leave_type
            if not applies_to(leave_type, employee):
                continue
            rows.append({
                "leave_type_id": leave_type.id,
                "code": leave_type.code,
                "name": leave_type.name,
                "is_paid": leave_type.is_paid,
                "year": year,
                "opening_balance_days": to_days(balance.opening_balance_days),
                "carry_forward_days": to_days(balance.carry_forward_days),
                "accrued_days": to_days(balance.accrued_days),
                "used_days": to_days(balance.used_days),
                "pending_approval_days": to_days(balance.pending_approval_days),
                "available_days": available_days(balance),
            })
        # Rows opened lazily above are persisted
        self._commit()
        return rows

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------
    def _validate(self, employee: Employee, leave_type_id: int, start_date: date, end_date: date,
                  is_half_day: bool, half_day_session: Optional[str], reason: Optional[str],
                  exclude_request_id: Optional[int] = None) -> Tuple[LeaveType, Decimal, Optional[str]]:
        leave_type = self.db.get(LeaveType, leave_type_id)
        if not leave_type or not leave_type.is_active:
            raise ValidationError("Unknown leave type", details={"leave_type_id": "Not an active leave type"})
        if not applies_to(leave_type, employee):
            raise ValidationError(
                f"{leave_type.name} is not available for this employee",
                details={"leave_type_id": "Not applicable to the employee's gender"},
            )
        if not reason or not reason.strip():
            raise ValidationError("Reason is required", details={"reason": "Required"})

        total_days = compute_total_days(start_date, end_date, is_half_day)

        session = None
        if is_half_day:
            session = (half_day_session or HalfDaySession.FIRST_HALF.value).upper()
            if session not in {s.value for s in HalfDaySession}:
                raise ValidationError(
                    "Invalid half-day session",
                    details={"half_day_session": "Must be FIRST_HALF or SECOND_HALF"},
                )

        if leave_type.code == WFH_CODE and total_days > self.policy.wfh_max_days:
            raise WFHLimitExceededError(self.policy.wfh_max_days)

        self._check_overlap(employee.id, start_date, end_date, is_half_day, session, exclude_request_id)
        return leave_type, total_days, session

    def _check_overlap(self, employee_id: int, start_date: date, end_date: date, is_half_day: bool,
                       session: Optional[str], exclude_request_id: Optional[int]):
        query = self.db.query(LeaveRequest).filter(
            LeaveRequest.employee_id == employee_id,
            LeaveRequest.status.in_(ACTIVE_STATUSES),
            LeaveRequest.start_date <= end_date,
            LeaveRequest.end_date >= start_date,
        )
        if exclude_request_id is not None:
            query = query.filter(LeaveRequest.id != exclude_request_id)
        for other in query.all():
            # Morning and afternoon halves of the same day can coexist
            if is_half_day and other.is_half_day and other.half_day_session != session:
                continue
            raise OverlappingLeaveError(other.id)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def submit(self, actor: Employee, leave_type_id: int, start_date: date, end_date: date, reason: str,
               is_half_day: bool = False, half_day_session: Optional[str] = None,
               contact_details_during_leave: Optional[str] = None) -> Tuple[LeaveRequest, Optional[str]]:
        leave_type, total_days, session = self._validate(
            actor, leave_type_id, start_date, end_date, is_half_day, half_day_session, reason,
        )
        request = LeaveRequest(
            employee_id=actor.id,
            leave_type_id=leave_type.id,
            start_date=start_date,
            end_date=end_date,
            is_half_day=is_half_day,
            half_day_session=session,
            total_days=total_days,
            reason=reason.strip(),
            contact_details_during_leave=contact_details_during_leave,
        )
        warning = self.workflow.submit(request, actor)
        return request, warning

    def edit(self, request_id: int, actor: Employee, leave_type_id: int, start_date: date, end_date: date,
             reason: str, is_half_day: bool = False, half_day_session: Optional[str] = None,
             contact_details_during_leave: Optional[str] = None) -> Tuple[LeaveRequest, Optional[str]]:
        request = self.workflow.get(request_id)
        if request.employee_id != actor.id:
            raise AccessDeniedError("You can only edit your own leave requests")
        if request.status != RequestStatus.PENDING.value:
            raise NotPendingError("Only pending leave requests can be edited.")

        leave_type, total_days, session = self._validate(
            actor, leave_type_id, start_date, end_date, is_half_day, half_day_session, reason,
            exclude_request_id=request.id,
        )
        try:
            # The reservation read below must be the one the database still holds
            self.workflow.claim_pending(request)
            before = self.workflow.handler.snapshot(request)
            old_key = (request.employee_id, request.leave_type_id, request.start_date.year)
            new_key = (request.employee_id, leave_type.id, start_date.year)
            old_days = to_days(request.total_days)

            if old_key == new_key:
                warning = self.ledger.adjust_reservation(*new_key, old_days, total_days)
            else:
                self.ledger.release(*old_key, old_days)
                warning = self.ledger.reserve(*new_key, total_days)

            request.leave_type_id = leave_type.id
            request.start_date = start_date
            request.end_date = end_date
            request.is_half_day = is_half_day
            request.half_day_session = session
            request.total_days = total_days
            request.reason = reason.strip()
            request.contact_details_during_leave = contact_details_during_leave
            self.workflow.restart(request)

            AuditService.log(
                self.db,
                action="edit_leave",
                entity_type="leave_request",
                entity_id=request.id,
                actor_id=actor.id,
                actor_role=actor.role,
                details={"old_days": old_days, "new_days": total_days, "warning": warning},
                before_state=before,
                after_state=self.workflow.handler.snapshot(request),
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(request)
        self.log_info(f"Leave request {request.id} edited", old_days=str(old_days), new_days=str(total_days))
        return request, warning

    def act(self, request_id: int, actor: Employee, decision: str, comment: Optional[str] = None,
            acting_role: Optional[str] = None, approver_id: Optional[int] = None) -> LeaveRequest:
        return self.workflow.act(request_id, actor, decision, comment, acting_role, approver_id)

    def cancel(self, request_id: int, actor: Employee) -> LeaveRequest:
        return self.workflow.cancel(request_id, actor)

    def get(self, request_id: int) -> LeaveRequest:
        return self.workflow.get(request_id)

    def list_requests(self, employee_id: Optional[int] = None, view: Optional[str] = None,
                      approver_id: Optional[int] = None, status: Optional[str] = None,
                      date_from: Optional[date] = None, date_to: Optional[date] = None) -> List[LeaveRequest]:
        """Requests touching [date_from, date_to], newest first."""
        query = self.db.query(LeaveRequest).join(Employee, LeaveRequest.employee_id == Employee.id)
        if view == "manager":
            if approver_id is None:
                raise ValidationError("approver_id is required for the manager view", details={"approver_id": "Required"})
            query = query.filter(Employee.reporting_manager_id == approver_id)
        elif view == "hr":
            pass
        elif view is not None:
            raise ValidationError("Unknown view", details={"view": "Must be 'manager' or 'hr'"})
        if employee_id is not None:
            query = query.filter(LeaveRequest.employee_id == employee_id)
        if status:
            query = query.filter(LeaveRequest.status == status.upper())
        if date_from:
            query = query.filter(LeaveRequest.end_date >= date_from)
        if date_to:
            query = query.filter(LeaveRequest.start_date <= date_to)
        return query.order_by(LeaveRequest.created_at.desc(), LeaveRequest.id.desc()).all()

    def upcoming(self, employee_id: int, from_date: date, limit: int = 5) -> List[LeaveRequest]:
        return self.db.query(LeaveRequest).filter(
            LeaveRequest.employee_id == employee_id,
            LeaveRequest.end_date >= from_date,
            or_(
                LeaveRequest.status == RequestStatus.APPROVED.value,
                LeaveRequest.status == RequestStatus.PENDING.value,
            ),
        ).order_by(LeaveRequest.start_date).limit(limit).all()
