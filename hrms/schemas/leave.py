from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from typing import Optional


class LeaveTypeResponse(BaseModel):
    id: int
    code: str
    name: str
    is_paid: bool
    requires_balance: bool
    gender_applicability: str
    default_days_per_year: Optional[float] = None

    model_config = ConfigDict(from_attributes=True)


class LeaveBalanceRow(BaseModel):
    leave_type_id: int
    code: str
    name: str
    is_paid: bool
    year: int
    opening_balance_days: float
    carry_forward_days: float
    accrued_days: float
    used_days: float
    pending_approval_days: float
    available_days: float


class LeaveRequestCreate(BaseModel):
    employee_id: Optional[int] = None
    leave_type_id: int
    start_date: date
    end_date: date
    is_half_day: bool = False
    half_day_session: Optional[str] = None
    reason: str = Field(..., min_length=1)
    contact_details_during_leave: Optional[str] = None


class LeaveRequestUpdate(LeaveRequestCreate):
    pass


class LeaveActionRequest(BaseModel):
    role: Optional[str] = None
    approver_id: Optional[int] = None
    action: str
    comment: Optional[str] = None


class LeaveRequestResponse(BaseModel):
    id: int
    employee_id: int
    employee_code: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    leave_type_id: int
    code: Optional[str] = None
    leave_type_name: Optional[str] = None
    start_date: date
    end_date: date
    is_half_day: bool
    half_day_session: Optional[str] = None
    total_days: float
    reason: str
    contact_details_during_leave: Optional[str] = None
    status: str
    approval_stage: Optional[str] = None
    manager_comment: Optional[str] = None
    hr_comment: Optional[str] = None
    manager_approver_id: Optional[int] = None
    hr_approver_id: Optional[int] = None
    manager_action_at: Optional[datetime] = None
    hr_action_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class LeaveSubmitResponse(LeaveRequestResponse):
    # Set when the request was accepted on a negative balance
    warning: Optional[str] = None
