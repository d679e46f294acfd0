from typing import Any, Dict, List

from hrms.core.exceptions import NotFoundError, ValidationError
from hrms.models.employee import Employee
from hrms.models.location import Location
from hrms.services.audit import AuditService
from hrms.services.base import BaseService

TRACKED_FIELDS = ("name", "country_code", "latitude", "longitude", "geo_fence_radius_meters", "timezone")


class LocationService(BaseService):
    """Office locations: geo-fence centre and radius, holiday country, shift timezone."""

    def list_locations(self) -> List[Location]:
        return self.db.query(Location).order_by(Location.name).all()

    def get(self, location_id: int) -> Location:
        location = self.db.get(Location, location_id)
        if location is None:
            raise NotFoundError(f"Location {location_id} not found")
        return location

    def _snapshot(self, location: Location) -> Dict[str, Any]:
        return {field: getattr(location, field) for field in TRACKED_FIELDS}

    def create_location(self, data: Dict[str, Any], actor: Employee) -> Location:
        location = Location(**data)
        try:
            self.db.add(location)
            self.db.flush()
            AuditService.log(
                self.db,
                action="create_location",
                entity_type="location",
                entity_id=location.id,
                actor_id=actor.id,
                actor_role=actor.role,
                details={},
                after_state=self._snapshot(location),
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(location)
        self.log_info(f"Location {location.name} created", actor_id=actor.id)
        return location

    def update_location(self, location_id: int, data: Dict[str, Any], actor: Employee) -> Location:
        location = self.get(location_id)
        for field in ("name", "country_code"):
            if field in data and data[field] is None:
                raise ValidationError(f"{field} cannot be cleared", details={field: "Required"})
        latitude = data.get("latitude", location.latitude)
        longitude = data.get("longitude", location.longitude)
        if (latitude is None) != (longitude is None):
            raise ValidationError(
                "latitude and longitude must be given together",
                details={"latitude": "Set both or neither", "longitude": "Set both or neither"},
            )

        before = self._snapshot(location)
        for field, value in data.items():
            setattr(location, field, value)
        try:
            AuditService.log(
                self.db,
                action="update_location",
                entity_type="location",
                entity_id=location.id,
                actor_id=actor.id,
                actor_role=actor.role,
                details={"fields": sorted(data)},
                before_state=before,
                after_state=self._snapshot(location),
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(location)
        self.log_info(f"Location {location.name} updated", fields=sorted(data))
        return location
