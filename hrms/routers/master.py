from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from hrms.database import get_db
from hrms.dependencies import get_current_employee, require_hr
from hrms.models.employee import Employee
from hrms.schemas.location import LocationCreate, LocationResponse, LocationUpdate
from hrms.services.location_service import LocationService

# Reference data shared by the employee forms
router = APIRouter(prefix="/master", tags=["master"])


@router.get("/locations", response_model=List[LocationResponse])
def list_locations(
    db: Session = Depends(get_db),
    current_employee: Employee = Depends(get_current_employee),
):
    return LocationService(db).list_locations()


@router.get("/locations/{location_id}", response_model=LocationResponse)
def get_location(
    location_id: int,
    db: Session = Depends(get_db),
    current_employee: Employee = Depends(get_current_employee),
):
    return LocationService(db).get(location_id)


@router.post("/locations", response_model=LocationResponse)
def create_location(
    payload: LocationCreate,
    db: Session = Depends(get_db),
    current_employee: Employee = Depends(require_hr()),
):
    return LocationService(db).create_location(payload.model_dump(), current_employee)


@router.put("/locations/{location_id}", response_model=LocationResponse)
def update_location(
    location_id: int,
    payload: LocationUpdate,
    db: Session = Depends(get_db),
    current_employee: Employee = Depends(require_hr()),
):
    return LocationService(db).update_location(
        location_id, payload.model_dump(exclude_unset=True), current_employee
    )
