from pydantic import BaseModel, ConfigDict, Field
from datetime import date


class HolidayCreate(BaseModel):
    country_code: str = Field(..., min_length=2, max_length=2)
    holiday_date: date
    name: str = Field(..., min_length=1)


class HolidayResponse(BaseModel):
    id: int
    country_code: str
    holiday_date: date
    name: str

    model_config = ConfigDict(from_attributes=True)


class DefaultCountryResponse(BaseModel):
    employee_id: int
    country_code: str
