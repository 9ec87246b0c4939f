"""Great-circle distance checks between a reported position and work sites."""

from __future__ import annotations

import math
from typing import Iterable

from ..core.constants import DEFAULT_GEOFENCE_RADIUS_METERS, EARTH_RADIUS_METERS
from ..core.exceptions import ValidationError
from .model import GeofenceCheck, GeofenceResult, Location, ReportedPosition


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Distance in meters between two GPS coordinates."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    return EARTH_RADIUS_METERS * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def check_geofence(position: ReportedPosition, location: Location) -> GeofenceCheck:
    if location.coordinates is None:
        raise ValidationError(f"Location {location.name!r} has no GPS coordinates configured")

    distance = haversine_distance(
        position.latitude,
        position.longitude,
        location.coordinates.latitude,
        location.coordinates.longitude,
    )
    max_radius = location.geofence_radius or DEFAULT_GEOFENCE_RADIUS_METERS
    return GeofenceCheck(
        location=location,
        distance=round(distance),
        max_radius=max_radius,
        is_within_geofence=distance <= max_radius,
    )


def check_multiple_geofences(position: ReportedPosition, locations: Iterable[Location]) -> GeofenceResult:
    results = sorted(
        (check_geofence(position, loc) for loc in locations if loc.coordinates is not None),
        key=lambda r: r.distance,
    )
    if not results:
        return GeofenceResult(is_valid=False)

    for r in results:
        if r.is_within_geofence:
            return GeofenceResult(
                is_valid=True,
                nearest_location=r.location,
                distance=r.distance,
                all_distances=tuple(results),
            )

    nearest = results[0]
    return GeofenceResult(
        is_valid=False,
        nearest_location=nearest.location,
        distance=nearest.distance,
        all_distances=tuple(results),
    )


def format_distance(meters: float) -> str:
    if meters < 1000:
        return f"{round(meters)}m"
    return f"{meters / 1000:.2f}km"
