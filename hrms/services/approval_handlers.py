"""
Per-kind behaviour plugged into the shared approval workflow.

A handler knows its model, how a request is routed through stages, which
columns record each stage's decision, and what must happen to the rest of the
system when a request is submitted, approved, rejected or cancelled.
"""
from typing import Dict, Optional, Tuple

from hrms.models.approval import ApprovalStage
from hrms.models.employee import Employee
from hrms.models.leave_request import LeaveRequest
from hrms.models.regularization import AttendanceRegularizationRequest
from hrms.models.wfh_request import WFHRequest
from hrms.services.attendance_service import AttendanceService
from hrms.services.leave_ledger import LeaveLedger

# stage -> (comment column, approver column, action timestamp column)
StageFields = Dict[str, Tuple[str, str, str]]

TWO_STAGE_FIELDS: StageFields = {
    ApprovalStage.MANAGER.value: ("manager_comment", "manager_approver_id", "manager_action_at"),
    ApprovalStage.HR.value: ("hr_comment", "hr_approver_id", "hr_action_at"),
}


class ApprovalHandler:
    kind: str = ""
    model = None
    stage_fields: StageFields = {}

    def __init__(self, db):
        self.db = db

    def first_stage(self, employee: Employee) -> str:
        raise NotImplementedError

    def next_stage(self, stage: str) -> Optional[str]:
        raise NotImplementedError

    def describe(self, request) -> str:
        return f"{self.kind} request #{request.id}"

    def snapshot(self, request) -> dict:
        state = {"status": request.status, "approval_stage": request.approval_stage}
        for comment_col, approver_col, _ in self.stage_fields.values():
            state[comment_col] = getattr(request, comment_col)
            state[approver_col] = getattr(request, approver_col)
        return state

    def clear_decisions(self, request):
        for columns in self.stage_fields.values():
            for column in columns:
                setattr(request, column, None)

    # Side effects. All run inside the workflow's transaction.
    def on_submit(self, request) -> Optional[str]:
        return None

    def on_approved(self, request):
        pass

    def on_rejected(self, request):
        pass

    def on_cancelled(self, request):
        pass


class TwoStageHandler(ApprovalHandler):
    """Manager (when the employee has one) then HR."""
    stage_fields = TWO_STAGE_FIELDS

    def first_stage(self, employee: Employee) -> str:
        if employee.reporting_manager_id:
            return ApprovalStage.MANAGER.value
        return ApprovalStage.HR.value

    def next_stage(self, stage: str) -> Optional[str]:
        if stage == ApprovalStage.MANAGER.value:
            return ApprovalStage.HR.value
        return None


class LeaveApprovalHandler(TwoStageHandler):
    kind = "leave"
    model = LeaveRequest

    def __init__(self, db, ledger: Optional[LeaveLedger] = None):
        super().__init__(db)
        self.ledger = ledger or LeaveLedger(db)

    def describe(self, request: LeaveRequest) -> str:
        code = request.leave_type.code if request.leave_type else "leave"
        return f"{code} request ({request.start_date} to {request.end_date}, {request.total_days} days)"

    def snapshot(self, request: LeaveRequest) -> dict:
        state = super().snapshot(request)
        state.update(total_days=request.total_days, leave_type_id=request.leave_type_id)
        return state

    def _ledger_key(self, request: LeaveRequest):
        return request.employee_id, request.leave_type_id, request.start_date.year

    def on_submit(self, request: LeaveRequest) -> Optional[str]:
        return self.ledger.reserve(*self._ledger_key(request), request.total_days)

    def on_approved(self, request: LeaveRequest):
        self.ledger.consume(*self._ledger_key(request), request.total_days)

    def on_rejected(self, request: LeaveRequest):
        self.ledger.release(*self._ledger_key(request), request.total_days)

    def on_cancelled(self, request: LeaveRequest):
        self.ledger.release(*self._ledger_key(request), request.total_days)


class RegularizationApprovalHandler(TwoStageHandler):
    kind = "regularization"
    model = AttendanceRegularizationRequest

    def __init__(self, db, attendance: Optional[AttendanceService] = None):
        super().__init__(db)
        self.attendance = attendance or AttendanceService(db)

    def describe(self, request: AttendanceRegularizationRequest) -> str:
        day = request.attendance_record.attendance_date if request.attendance_record else None
        return f"attendance correction for {day}"

    def on_approved(self, request: AttendanceRegularizationRequest):
        self.attendance.apply_regularization(
            request.attendance_record_id,
            request.requested_clock_in,
            request.requested_clock_out,
        )


class WFHApprovalHandler(ApprovalHandler):
    """Single admin stage, no balance interaction."""
    kind = "wfh"
    model = WFHRequest
    stage_fields = {ApprovalStage.ADMIN.value: ("admin_comment", "approved_by", "action_at")}

    def first_stage(self, employee: Employee) -> str:
        return ApprovalStage.ADMIN.value

    def next_stage(self, stage: str) -> Optional[str]:
        return None

    def describe(self, request: WFHRequest) -> str:
        return f"WFH request ({request.start_date} to {request.end_date})"
