from __future__ import annotations

from dataclasses import dataclass

import pytest

from attendance_payroll.core.exceptions import NoActiveLocationError, OutsideGeofenceError, ValidationError
from attendance_payroll.geofence.model import Coordinates, Location, ReportedPosition
from attendance_payroll.geofence.service import GeofenceService
from attendance_payroll.geofence.validator import (
    check_geofence,
    check_multiple_geofences,
    format_distance,
    haversine_distance,
)

OFFICE = Location("loc-1", "Head Office", Coordinates(13.7563, 100.5018), geofence_radius=150)
WAREHOUSE = Location("loc-2", "Warehouse", Coordinates(13.7663, 100.5018), geofence_radius=100)


@dataclass
class InMemoryLocations:
    items: list

    def list_active(self):
        return [loc for loc in self.items if loc.is_active]

    def get_by_id(self, location_id):
        return next((loc for loc in self.items if loc.location_id == location_id), None)


@pytest.mark.parametrize("lat,lon", [(0.0, 0.0), (13.7563, 100.5018), (-33.8688, 151.2093), (89.9, -179.9)])
def test_identical_coordinates_are_within_with_zero_distance(lat, lon):
    location = Location("x", "Site", Coordinates(lat, lon), geofence_radius=1)

    check = check_geofence(ReportedPosition(lat, lon), location)

    assert check.distance == 0
    assert check.is_within_geofence is True


def test_haversine_one_degree_latitude_is_about_111km():
    assert haversine_distance(0, 0, 1, 0) == pytest.approx(111_195, rel=1e-3)


def test_missing_radius_defaults_to_100m():
    location = Location("x", "Site", Coordinates(0.0, 0.0))

    check = check_geofence(ReportedPosition(0.0, 0.0), location)

    assert check.max_radius == 100


def test_location_without_coordinates_is_rejected():
    with pytest.raises(ValidationError):
        check_geofence(ReportedPosition(0.0, 0.0), Location("x", "No GPS"))


def test_multiple_picks_nearest_containing_location():
    # ~1.1 km north of the office, right at the warehouse
    position = ReportedPosition(13.7663, 100.5018)

    result = check_multiple_geofences(position, [OFFICE, WAREHOUSE])

    assert result.is_valid is True
    assert result.nearest_location == WAREHOUSE
    assert [c.location.location_id for c in result.all_distances] == ["loc-2", "loc-1"]


def test_multiple_outside_every_fence_reports_nearest():
    position = ReportedPosition(13.7763, 100.5018)

    result = check_multiple_geofences(position, [OFFICE, WAREHOUSE])

    assert result.is_valid is False
    assert result.nearest_location == WAREHOUSE
    assert result.distance > 1000


def test_multiple_skips_locations_without_coordinates():
    result = check_multiple_geofences(ReportedPosition(0.0, 0.0), [Location("x", "No GPS")])

    assert result.is_valid is False
    assert result.nearest_location is None
    assert list(result.all_distances) == []


def test_format_distance():
    assert format_distance(85) == "85m"
    assert format_distance(1250) == "1.25km"


def test_service_rejects_position_outside_every_site():
    service = GeofenceService(InMemoryLocations([OFFICE]))

    with pytest.raises(OutsideGeofenceError) as exc:
        service.validate(ReportedPosition(13.80, 100.5018))

    assert "Head Office" in exc.value.message


def test_service_requires_an_active_location():
    service = GeofenceService(InMemoryLocations([]))

    with pytest.raises(NoActiveLocationError):
        service.validate(ReportedPosition(13.7563, 100.5018))


def test_remote_work_is_tagged_but_not_blocked():
    service = GeofenceService(InMemoryLocations([OFFICE]))

    snapshot = service.validate(ReportedPosition(13.80, 100.5018), is_remote_work=True)

    assert snapshot.is_within_geofence is False
    assert snapshot.location_name == "Head Office"


def test_service_snapshot_inside_fence():
    service = GeofenceService(InMemoryLocations([OFFICE]))

    snapshot = service.validate(ReportedPosition(13.7563, 100.5018, accuracy=5))

    assert snapshot.is_within_geofence is True
    assert snapshot.distance_from_office == 0
    assert snapshot.location_id == "loc-1"
    assert snapshot.accuracy == 5
