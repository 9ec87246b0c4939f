from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Sequence


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class Location:
    """A configured work site; only sites with coordinates can be geofenced."""

    location_id: str
    name: str
    coordinates: Optional[Coordinates] = None
    geofence_radius: Optional[float] = None
    is_active: bool = True


@dataclass(frozen=True)
class ReportedPosition:
    """GPS fix sent by the client with a clock event."""

    latitude: float
    longitude: float
    accuracy: Optional[float] = None
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class GeofenceCheck:
    location: Location
    distance: float
    max_radius: float
    is_within_geofence: bool


@dataclass(frozen=True)
class GeofenceResult:
    is_valid: bool
    nearest_location: Optional[Location] = None
    distance: Optional[float] = None
    all_distances: Sequence[GeofenceCheck] = field(default_factory=tuple)


@dataclass(frozen=True)
class LocationSnapshot:
    """Position stored on an attendance record, tagged with the geofence outcome."""

    latitude: float
    longitude: float
    accuracy: Optional[float] = None
    timestamp: Optional[datetime] = None
    is_within_geofence: Optional[bool] = None
    distance_from_office: Optional[float] = None
    location_id: Optional[str] = None
    location_name: Optional[str] = None
