from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Location


class LocationRepository(Protocol):
    def list_active(self) -> Sequence[Location]:
        raise NotImplementedError

    def get_by_id(self, location_id: str) -> Optional[Location]:
        raise NotImplementedError
