from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from typing import Optional


class WFHRequestCreate(BaseModel):
    employee_id: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    request_date: Optional[date] = None  # single-day form used by older clients
    reason: str = Field(..., min_length=1)


class WFHAction(BaseModel):
    status: str
    admin_comment: Optional[str] = None
    approved_by: Optional[int] = None


class WFHRequestResponse(BaseModel):
    id: int
    employee_id: int
    employee_code: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    start_date: date
    end_date: date
    total_days: int
    reason: str
    status: str
    admin_comment: Optional[str] = None
    approved_by: Optional[int] = None
    action_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
