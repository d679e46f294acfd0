from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from datetime import date, datetime, time
from typing import Optional
from hrms.core.security import decrypt_data, mask_account_number
from hrms.models.employee import EmployeeRole, EmploymentStatus, Gender


class EmployeeBase(BaseModel):
    first_name: str = Field(..., min_length=1)
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    gender: Optional[Gender] = None
    role: EmployeeRole = EmployeeRole.EMPLOYEE
    reporting_manager_id: Optional[int] = None
    location_id: Optional[int] = None
    shift_start_time: Optional[time] = None
    shift_end_time: Optional[time] = None
    monthly_salary: Optional[float] = Field(default=None, ge=0)
    base_salary: Optional[float] = Field(default=None, ge=0)
    allowance_housing: Optional[float] = Field(default=None, ge=0)
    allowance_transport: Optional[float] = Field(default=None, ge=0)
    allowance_medical: Optional[float] = Field(default=None, ge=0)
    bank_name: Optional[str] = None
    date_of_joining: Optional[date] = None
    employment_status: EmploymentStatus = EmploymentStatus.ACTIVE


class EmployeeCreate(EmployeeBase):
    employee_code: str = Field(..., min_length=1)
    bank_account_number: Optional[str] = None


class EmployeeUpdate(BaseModel):
    """Partial update: only the fields sent are changed."""
    employee_code: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    gender: Optional[Gender] = None
    role: Optional[EmployeeRole] = None
    reporting_manager_id: Optional[int] = None
    location_id: Optional[int] = None
    shift_start_time: Optional[time] = None
    shift_end_time: Optional[time] = None
    monthly_salary: Optional[float] = Field(default=None, ge=0)
    base_salary: Optional[float] = Field(default=None, ge=0)
    allowance_housing: Optional[float] = Field(default=None, ge=0)
    allowance_transport: Optional[float] = Field(default=None, ge=0)
    allowance_medical: Optional[float] = Field(default=None, ge=0)
    bank_name: Optional[str] = None
    bank_account_number: Optional[str] = None
    date_of_joining: Optional[date] = None
    employment_status: Optional[EmploymentStatus] = None


class EmployeeResponse(EmployeeBase):
    id: int
    employee_code: str
    full_name: str
    # Never returned in clear text
    bank_account_number: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("bank_account_number", mode="before")
    @classmethod
    def mask_account(cls, value):
        if not value:
            return value
        return mask_account_number(decrypt_data(value))
