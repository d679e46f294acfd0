from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import List, Optional


class PayrollItemResponse(BaseModel):
    id: Optional[int] = None  # absent on preview rows
    employee_id: int
    employee_code: Optional[str] = None
    employee_name: Optional[str] = None
    year: int
    month: int
    monthly_salary: float
    gross_salary: float
    total_working_days: int
    present_days: float
    paid_leave_days: float
    unpaid_leave_days: float
    absent_days: float
    total_unpaid_days: float
    daily_rate: float
    unpaid_deduction_amount: float
    net_salary: float
    run_date: Optional[datetime] = None
    meta_json: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class SkippedEmployee(BaseModel):
    employee_id: int
    employee_code: str
    reason: str


class PayrollPreviewResponse(BaseModel):
    year: int
    month: int
    total_employees: int
    items: List[PayrollItemResponse]
    skipped: List[SkippedEmployee] = []


class FinalizeRequest(BaseModel):
    year: int = Field(..., ge=2000, le=2100)
    month: int = Field(..., ge=1, le=12)
    notes: Optional[str] = None


class FinalizeResponse(BaseModel):
    success: bool = True
    run_id: int
    year: int
    month: int
    notes: Optional[str] = None
    run_date: Optional[datetime] = None
    total_employees: int
    skipped: List[SkippedEmployee] = []
