from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from typing import Optional


class CheckInRequest(BaseModel):
    # Accepted for older clients; the caller is always the token's employee
    employee_id: Optional[int] = None
    device_latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    device_longitude: Optional[float] = Field(default=None, ge=-180, le=180)


class AttendanceRecordResponse(BaseModel):
    id: int
    employee_id: int
    employee_code: Optional[str] = None
    employee_name: Optional[str] = None
    attendance_date: date
    clock_in_time: Optional[datetime] = None
    clock_out_time: Optional[datetime] = None
    status: str
    absence_reason: Optional[str] = None
    is_late: bool
    work_location: Optional[str] = None
    total_hours: Optional[float] = None

    model_config = ConfigDict(from_attributes=True)


class MarkAbsentRequest(BaseModel):
    attendance_date: date = Field(alias="date")

    model_config = ConfigDict(populate_by_name=True)


class MarkAbsentResponse(BaseModel):
    date: date
    created: int


class RegularizationCreate(BaseModel):
    employee_id: Optional[int] = None
    attendance_record_id: int
    # Sent by the client for display; the server snapshots the record itself
    original_clock_in: Optional[datetime] = None
    original_clock_out: Optional[datetime] = None
    requested_clock_in: Optional[datetime] = None
    requested_clock_out: Optional[datetime] = None
    reason: str = Field(..., min_length=1)


class RegularizationAction(BaseModel):
    role: Optional[str] = None
    approver_id: Optional[int] = None
    status: str
    comment: Optional[str] = None


class RegularizationResponse(BaseModel):
    id: int
    employee_id: int
    employee_code: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    attendance_record_id: int
    attendance_date: Optional[date] = None
    original_clock_in: Optional[datetime] = None
    original_clock_out: Optional[datetime] = None
    requested_clock_in: Optional[datetime] = None
    requested_clock_out: Optional[datetime] = None
    reason: str
    status: str
    approval_stage: Optional[str] = None
    manager_comment: Optional[str] = None
    hr_comment: Optional[str] = None
    manager_approver_id: Optional[int] = None
    hr_approver_id: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
