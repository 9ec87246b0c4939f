from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..database.document_store import DocumentStore, Filter, StoredDocument
from .model import Coordinates, Location
from .repository import LocationRepository

LOCATIONS_COLLECTION = "locations"


def location_from_document(doc: StoredDocument) -> Location:
    d: Dict[str, Any] = doc.data
    # Older documents keep the point under ``gpsCoordinates``.
    coords = d.get("coordinates") or d.get("gps_coordinates")
    return Location(
        location_id=doc.doc_id,
        name=str(d.get("name") or doc.doc_id),
        coordinates=Coordinates(float(coords["latitude"]), float(coords["longitude"])) if coords else None,
        geofence_radius=float(d["geofence_radius"]) if d.get("geofence_radius") else None,
        is_active=bool(d.get("is_active", True)),
    )


class MySQLLocationRepository(LocationRepository):
    def __init__(self, store: DocumentStore):
        self._store = store

    def list_active(self) -> Sequence[Location]:
        docs = self._store.query(LOCATIONS_COLLECTION, [Filter("is_active", "==", True)])
        return [location_from_document(d) for d in docs]

    def get_by_id(self, location_id: str) -> Optional[Location]:
        doc = self._store.get(LOCATIONS_COLLECTION, location_id)
        return location_from_document(doc) if doc else None
