from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import PenaltyPolicy


class PenaltyPolicyRepository(Protocol):
    def list_active(self) -> Sequence[PenaltyPolicy]:
        raise NotImplementedError

    def get_by_id(self, policy_id: str) -> Optional[PenaltyPolicy]:
        raise NotImplementedError
