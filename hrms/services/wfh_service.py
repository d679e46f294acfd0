from datetime import date
from typing import List, Optional

from hrms.core.config import LeavePolicySettings, settings
from hrms.core.exceptions import PolicyViolation, ValidationError, WFHLimitExceededError
from hrms.models.approval import RequestStatus
from hrms.models.employee import Employee
from hrms.models.wfh_request import WFHRequest
from hrms.services.approval_handlers import WFHApprovalHandler
from hrms.services.approval_workflow import ApprovalWorkflow
from hrms.services.base import BaseService
from hrms.services.regularization_service import STATUS_TO_DECISION
from hrms.services.work_calendar import inclusive_days


class WFHService(BaseService):
    def __init__(self, db, policy: Optional[LeavePolicySettings] = None):
        super().__init__(db)
        self.policy = policy or settings.leave
        self.workflow = ApprovalWorkflow(db, WFHApprovalHandler(db))

    def submit(self, actor: Employee, reason: str, start_date: Optional[date] = None,
               end_date: Optional[date] = None, request_date: Optional[date] = None) -> WFHRequest:
        # Older clients send a single request_date
        start_date = start_date or request_date
        end_date = end_date or start_date
        if start_date is None:
            raise ValidationError("Start date is required", details={"start_date": "Required"})
        if end_date < start_date:
            raise ValidationError("End date cannot be before start date", details={"end_date": "Must be on or after start_date"})
        if not reason or not reason.strip():
            raise ValidationError("Reason is required", details={"reason": "Required"})

        total_days = inclusive_days(start_date, end_date)
        if total_days > self.policy.wfh_max_days:
            self.log_warning(f"WFH request over limit for employee {actor.id}", total_days=total_days)
            raise WFHLimitExceededError(self.policy.wfh_max_days)

        overlapping = self.db.query(WFHRequest.id).filter(
            WFHRequest.employee_id == actor.id,
            WFHRequest.status.in_([RequestStatus.PENDING.value, RequestStatus.APPROVED.value]),
            WFHRequest.start_date <= end_date,
            WFHRequest.end_date >= start_date,
        ).first()
        if overlapping is not None:
            raise PolicyViolation(
                "The requested dates overlap an existing WFH request.",
                error_code="OVERLAPPING_WFH",
                details={"request_id": overlapping.id},
            )

        request = WFHRequest(
            employee_id=actor.id,
            start_date=start_date,
            end_date=end_date,
            total_days=total_days,
            reason=reason.strip(),
        )
        self.workflow.submit(request, actor)
        return request

    def act(self, request_id: int, actor: Employee, status: str, admin_comment: Optional[str] = None,
            approved_by: Optional[int] = None) -> WFHRequest:
        decision = STATUS_TO_DECISION.get((status or "").upper())
        if decision is None:
            raise ValidationError("Invalid status", details={"status": "Must be APPROVED or REJECTED"})
        return self.workflow.act(request_id, actor, decision, admin_comment, approver_id=approved_by)

    def list_requests(self, employee_id: Optional[int] = None, status: Optional[str] = None) -> List[WFHRequest]:
        query = self.db.query(WFHRequest)
        if employee_id is not None:
            query = query.filter(WFHRequest.employee_id == employee_id)
        if status:
            query = query.filter(WFHRequest.status == status.upper())
        return query.order_by(WFHRequest.created_at.desc(), WFHRequest.id.desc()).all()
