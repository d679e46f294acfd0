"""
Approval Workflow

One state machine for leave, attendance regularization and WFH requests:

    PENDING(stage=MANAGER) --approve--> PENDING(stage=HR) --approve--> APPROVED
            |                                  |
            +-------------reject---------------+-----------------> REJECTED
    PENDING --owner cancel--> CANCELLED

Every transition is a conditional UPDATE on (id, status=PENDING, stage), so of
two concurrent decisions only one can win. The handler side effect, the audit
entry and the notifications commit together with the status change.
"""
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import update

from hrms.core.exceptions import AccessDeniedError, NotFoundError, NotPendingError, ValidationError
from hrms.models.approval import ApprovalStage, Decision, RequestStatus
from hrms.models.employee import Employee, EmployeeRole
from hrms.services.approval_handlers import ApprovalHandler
from hrms.services.audit import AuditService
from hrms.services.base import BaseService
from hrms.services.notification import NotificationService

# Which acting roles a caller may claim, by their own role
CLAIMABLE_ROLES = {
    EmployeeRole.SUPER_ADMIN: {"ADMIN", "HR", "MANAGER"},
    EmployeeRole.ADMIN: {"ADMIN", "HR", "MANAGER"},
    EmployeeRole.HR: {"HR", "MANAGER"},
    EmployeeRole.MANAGER: {"MANAGER"},
    EmployeeRole.PAYROLL: {"MANAGER"},
    EmployeeRole.EMPLOYEE: {"MANAGER"},
}

STAGE_LABELS = {
    ApprovalStage.MANAGER.value: "manager",
    ApprovalStage.HR.value: "HR",
    ApprovalStage.ADMIN.value: "admin",
}


class ApprovalWorkflow(BaseService):
    def __init__(self, db, handler: ApprovalHandler):
        super().__init__(db)
        self.handler = handler
        self.model = handler.model

    def get(self, request_id: int):
        request = self.db.get(self.model, request_id)
        if request is None:
            raise NotFoundError(f"{self.handler.kind.capitalize()} request {request_id} not found")
        return request

    # ------------------------------------------------------------------
    # Routing and permissions
    # ------------------------------------------------------------------
    def route(self, request) -> str:
        employee = self.db.get(Employee, request.employee_id)
        if employee is None:
            raise NotFoundError(f"Employee {request.employee_id} not found")
        return self.handler.first_stage(employee)

    def claim_pending(self, request):
        """
        Guard for in-place edits: a conditional UPDATE that only matches while the
        request is still PENDING, holding the row until the caller commits.
        """
        result = self.db.execute(
            update(self.model)
            .where(self.model.id == request.id, self.model.status == RequestStatus.PENDING.value)
            .values(status=RequestStatus.PENDING.value)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotPendingError()
        self.db.refresh(request)

    def restart(self, request):
        """Send an edited request back to its first stage with earlier decisions cleared."""
        self.handler.clear_decisions(request)
        request.approval_stage = self.route(request)

    def authorize(self, request, stage: str, actor: Employee, acting_role: Optional[str] = None):
        if acting_role is not None:
            acting_role = acting_role.upper()
            if acting_role not in CLAIMABLE_ROLES.get(actor.role, set()):
                raise AccessDeniedError(f"You cannot act as {acting_role}")
            if acting_role == ApprovalStage.MANAGER.value and stage != ApprovalStage.MANAGER.value:
                raise NotPendingError(f"Request is not awaiting manager approval (stage: {stage or 'none'}).")
            if acting_role == "HR" and stage == ApprovalStage.MANAGER.value:
                raise NotPendingError("Request is still awaiting manager approval.")

        if actor.id == request.employee_id:
            raise AccessDeniedError("You cannot approve your own request")

        if stage == ApprovalStage.MANAGER.value:
            employee = self.db.get(Employee, request.employee_id)
            if not (actor.is_admin or (employee and employee.reporting_manager_id == actor.id)):
                raise AccessDeniedError("Only the employee's reporting manager can act at this stage")
        elif stage == ApprovalStage.HR.value:
            if not actor.is_hr:
                raise AccessDeniedError("HR approval required")
        elif stage == ApprovalStage.ADMIN.value:
            if not actor.is_admin:
                raise AccessDeniedError("Admin approval required")

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def submit(self, request, actor: Employee) -> Optional[str]:
        """Persist a new PENDING request and run the kind's submit side effect."""
        request.status = RequestStatus.PENDING.value
        request.approval_stage = self.route(request)
        try:
            self.db.add(request)
            self.db.flush()
            warning = self.handler.on_submit(request)
            AuditService.log(
                self.db,
                action=f"submit_{self.handler.kind}",
                entity_type=f"{self.handler.kind}_request",
                entity_id=request.id,
                actor_id=actor.id,
                actor_role=actor.role,
                details={"employee_id": request.employee_id, "warning": warning},
                after_state=self.handler.snapshot(request),
            )
            self._notify_approver(request)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(request)
        self.log_info(
            f"{self.handler.kind} request {request.id} submitted",
            employee_id=request.employee_id, approval_stage=request.approval_stage,
        )
        return warning

    def act(self, request_id: int, actor: Employee, decision: str, comment: Optional[str] = None,
            acting_role: Optional[str] = None, approver_id: Optional[int] = None):
        if approver_id is not None and approver_id != actor.id:
            raise AccessDeniedError("approver_id does not match the authenticated user")
        try:
            decision = Decision(decision.upper()).value
        except (ValueError, AttributeError):
            raise ValidationError("Invalid decision", details={"action": "Must be APPROVE or REJECT"})

        request = self.get(request_id)
        if request.status != RequestStatus.PENDING.value:
            raise NotPendingError()
        stage = request.approval_stage
        self.authorize(request, stage, actor, acting_role)

        before = self.handler.snapshot(request)
        next_stage = self.handler.next_stage(stage) if decision == Decision.APPROVE.value else None
        if next_stage:
            new_status = RequestStatus.PENDING.value
        elif decision == Decision.APPROVE.value:
            new_status = RequestStatus.APPROVED.value
        else:
            new_status = RequestStatus.REJECTED.value

        comment_col, approver_col, action_at_col = self.handler.stage_fields[stage]
        values = {
            "status": new_status,
            "approval_stage": next_stage,
            comment_col: comment,
            approver_col: actor.id,
            action_at_col: datetime.now(timezone.utc),
        }

        try:
            result = self.db.execute(
                update(self.model)
                .where(
                    self.model.id == request_id,
                    self.model.status == RequestStatus.PENDING.value,
                    self.model.approval_stage == stage,
                )
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise NotPendingError()
            self.db.refresh(request)

            if new_status == RequestStatus.APPROVED.value:
                self.handler.on_approved(request)
            elif new_status == RequestStatus.REJECTED.value:
                self.handler.on_rejected(request)

            AuditService.log(
                self.db,
                action=f"{decision.lower()}_{self.handler.kind}_{stage.lower()}",
                entity_type=f"{self.handler.kind}_request",
                entity_id=request.id,
                actor_id=actor.id,
                actor_role=acting_role or actor.role,
                details={"employee_id": request.employee_id, "comment": comment, "stage": stage},
                before_state=before,
                after_state=self.handler.snapshot(request),
            )
            self._notify_decision(request, stage, new_status, comment)
            if next_stage:
                self._notify_approver(request)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(request)
        self.log_info(
            f"{self.handler.kind} request {request_id} {decision.lower()} at {stage} stage",
            actor_id=actor.id, status=request.status,
        )
        return request

    def cancel(self, request_id: int, actor: Employee):
        request = self.get(request_id)
        if request.employee_id != actor.id:
            raise AccessDeniedError("Only the requester can cancel this request")
        if request.status != RequestStatus.PENDING.value:
            raise NotPendingError()

        before = self.handler.snapshot(request)
        try:
            result = self.db.execute(
                update(self.model)
                .where(self.model.id == request_id, self.model.status == RequestStatus.PENDING.value)
                .values(status=RequestStatus.CANCELLED.value, approval_stage=None)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise NotPendingError()
            self.db.refresh(request)
            self.handler.on_cancelled(request)
            AuditService.log(
                self.db,
                action=f"cancel_{self.handler.kind}",
                entity_type=f"{self.handler.kind}_request",
                entity_id=request.id,
                actor_id=actor.id,
                actor_role=actor.role,
                details={"employee_id": request.employee_id},
                before_state=before,
                after_state=self.handler.snapshot(request),
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(request)
        self.log_info(f"{self.handler.kind} request {request_id} cancelled")
        return request

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------
    def _notify_approver(self, request):
        if request.approval_stage != ApprovalStage.MANAGER.value:
            return
        employee = self.db.get(Employee, request.employee_id)
        if employee and employee.reporting_manager_id:
            NotificationService.create_notification(
                self.db,
                employee.reporting_manager_id,
                "Approval Needed",
                f"{employee.full_name} submitted a {self.handler.describe(request)}.",
                type="info",
                entity_type=f"{self.handler.kind}_request",
                entity_id=request.id,
            )

    def _notify_decision(self, request, stage: str, new_status: str, comment: Optional[str]):
        description = self.handler.describe(request)
        label = STAGE_LABELS.get(stage, stage)
        if new_status == RequestStatus.APPROVED.value:
            title, message, kind = "Request Approved", f"Your {description} has been APPROVED.", "success"
        elif new_status == RequestStatus.REJECTED.value:
            title, kind = "Request Rejected", "error"
            message = f"Your {description} has been REJECTED by {label}."
            if comment:
                message += f" Reason: {comment}"
        else:
            title, kind = "Request Update", "info"
            message = f"Your {description} was approved by {label} and is pending the next approval."
        NotificationService.create_notification(
            self.db,
            request.employee_id,
            title,
            message,
            type=kind,
            entity_type=f"{self.handler.kind}_request",
            entity_id=request.id,
        )
