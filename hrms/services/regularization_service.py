from datetime import datetime
from typing import List, Optional

from hrms.core.exceptions import AccessDeniedError, NotFoundError, StateConflict, ValidationError
from hrms.models.approval import Decision, RequestStatus
from hrms.models.attendance import AttendanceRecord
from hrms.models.employee import Employee
from hrms.models.regularization import AttendanceRegularizationRequest
from hrms.services.approval_handlers import RegularizationApprovalHandler
from hrms.services.approval_workflow import ApprovalWorkflow
from hrms.services.attendance_service import AttendanceService, to_local_naive
from hrms.services.base import BaseService

# The correction screen posts the target status rather than a decision
STATUS_TO_DECISION = {
    RequestStatus.APPROVED.value: Decision.APPROVE.value,
    RequestStatus.REJECTED.value: Decision.REJECT.value,
}


class RegularizationService(BaseService):
    def __init__(self, db, attendance: Optional[AttendanceService] = None):
        super().__init__(db)
        self.attendance = attendance or AttendanceService(db)
        self.workflow = ApprovalWorkflow(db, RegularizationApprovalHandler(db, self.attendance))

    def submit(self, actor: Employee, attendance_record_id: int, reason: str,
               requested_clock_in: Optional[datetime] = None,
               requested_clock_out: Optional[datetime] = None) -> AttendanceRegularizationRequest:
        record = self.db.get(AttendanceRecord, attendance_record_id)
        if record is None:
            raise NotFoundError(f"Attendance record {attendance_record_id} not found")
        if record.employee_id != actor.id:
            raise AccessDeniedError("You can only correct your own attendance")
        if not reason or not reason.strip():
            raise ValidationError("Reason is required", details={"reason": "Required"})

        zone = self.attendance.timezone_for(actor)
        requested_in = to_local_naive(requested_clock_in, zone) if requested_clock_in else None
        requested_out = to_local_naive(requested_clock_out, zone) if requested_clock_out else None
        changes_in = requested_in is not None and requested_in != record.clock_in_time
        changes_out = requested_out is not None and requested_out != record.clock_out_time
        if not (changes_in or changes_out):
            raise ValidationError(
                "Request at least one clock time different from the recorded one",
                details={"requested_clock_in": "No change", "requested_clock_out": "No change"},
            )

        effective_in = requested_in or record.clock_in_time
        effective_out = requested_out or record.clock_out_time
        if effective_out is not None and effective_in is None:
            raise ValidationError("A clock-out time requires a clock-in time", details={"requested_clock_in": "Required"})
        if effective_in is not None and effective_out is not None and effective_out < effective_in:
            raise ValidationError(
                "Clock-out time cannot be before clock-in time",
                details={"requested_clock_out": "Must not be before clock-in"},
            )
        for value, field in ((requested_in, "requested_clock_in"), (requested_out, "requested_clock_out")):
            if value is not None and value.date() != record.attendance_date:
                raise ValidationError(
                    "Requested times must fall on the attendance date",
                    details={field: f"Must be on {record.attendance_date}"},
                )

        pending = self.db.query(AttendanceRegularizationRequest.id).filter(
            AttendanceRegularizationRequest.attendance_record_id == record.id,
            AttendanceRegularizationRequest.status == RequestStatus.PENDING.value,
        ).first()
        if pending is not None:
            raise StateConflict("A correction request for this day is already pending.", error_code="DUPLICATE_REQUEST")

        request = AttendanceRegularizationRequest(
            employee_id=actor.id,
            attendance_record_id=record.id,
            original_clock_in=record.clock_in_time,
            original_clock_out=record.clock_out_time,
            requested_clock_in=requested_in,
            requested_clock_out=requested_out,
            reason=reason.strip(),
        )
        self.workflow.submit(request, actor)
        return request

    def act(self, request_id: int, actor: Employee, status: str, comment: Optional[str] = None,
            acting_role: Optional[str] = None, approver_id: Optional[int] = None) -> AttendanceRegularizationRequest:
        decision = STATUS_TO_DECISION.get((status or "").upper())
        if decision is None:
            raise ValidationError("Invalid status", details={"status": "Must be APPROVED or REJECTED"})
        return self.workflow.act(request_id, actor, decision, comment, acting_role, approver_id)

    def list_requests(self, status: Optional[str] = None, employee_id: Optional[int] = None,
                      manager_id: Optional[int] = None) -> List[AttendanceRegularizationRequest]:
        query = self.db.query(AttendanceRegularizationRequest).join(
            Employee, AttendanceRegularizationRequest.employee_id == Employee.id
        )
        if status:
            query = query.filter(AttendanceRegularizationRequest.status == status.upper())
        if employee_id is not None:
            query = query.filter(AttendanceRegularizationRequest.employee_id == employee_id)
        if manager_id is not None:
            query = query.filter(Employee.reporting_manager_id == manager_id)
        return query.order_by(
            AttendanceRegularizationRequest.created_at.desc(), AttendanceRegularizationRequest.id.desc()
        ).all()
