from __future__ import annotations

import logging

from ..core.exceptions import NoActiveLocationError, OutsideGeofenceError
from .model import LocationSnapshot, ReportedPosition
from .repository import LocationRepository
from .validator import check_multiple_geofences, format_distance

logger = logging.getLogger(__name__)


class GeofenceService:
    """Validates clock positions against the tenant's active work sites."""

    def __init__(self, locations: LocationRepository):
        self._locations = locations

    def validate(self, position: ReportedPosition, *, is_remote_work: bool = False) -> LocationSnapshot:
        locations = list(self._locations.list_active())
        if not locations and not is_remote_work:
            raise NoActiveLocationError("No active work location is configured")

        result = check_multiple_geofences(position, locations)
        if not result.is_valid and not is_remote_work:
            if result.nearest_location is None:
                raise NoActiveLocationError("No work location has GPS coordinates configured")
            raise OutsideGeofenceError(
                f"You are {format_distance(result.distance)} from {result.nearest_location.name}, "
                "outside the allowed area"
            )

        if not result.is_valid:
            logger.info("Remote clock event outside every geofence (nearest=%s)", result.distance)

        return LocationSnapshot(
            latitude=position.latitude,
            longitude=position.longitude,
            accuracy=position.accuracy,
            timestamp=position.timestamp,
            is_within_geofence=result.is_valid,
            distance_from_office=result.distance,
            location_id=result.nearest_location.location_id if result.nearest_location else None,
            location_name=result.nearest_location.name if result.nearest_location else None,
        )
