from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..core.enums import PenaltyCalculationType, ViolationType
from ..database.document_store import DocumentStore, Filter, StoredDocument
from ..database.documents import as_date, as_optional_float
from .model import PenaltyPolicy, PenaltyThreshold, ProgressivePenaltyRule
from .repository import PenaltyPolicyRepository

PENALTY_POLICIES_COLLECTION = "penaltyPolicies"


def _int_or_none(value: Any) -> Optional[int]:
    return int(value) if value is not None else None


def _threshold(d: Optional[Dict[str, Any]]) -> PenaltyThreshold:
    if not d:
        return PenaltyThreshold()
    return PenaltyThreshold(
        minutes=_int_or_none(d.get("minutes")),
        occurrences=_int_or_none(d.get("occurrences")),
        days=_int_or_none(d.get("days")),
    )


def _rule(d: Dict[str, Any]) -> ProgressivePenaltyRule:
    return ProgressivePenaltyRule(
        from_occurrence=int(d["from_occurrence"]),
        to_occurrence=_int_or_none(d.get("to_occurrence")),
        amount=float(d.get("amount") or 0),
        percentage=as_optional_float(d.get("percentage")),
        description=d.get("description"),
    )


def policy_from_document(doc: StoredDocument) -> PenaltyPolicy:
    d = doc.data
    return PenaltyPolicy(
        policy_id=doc.doc_id,
        name=str(d.get("name") or ""),
        code=str(d.get("code") or ""),
        violation_type=ViolationType(d["violation_type"]),
        calculation_type=PenaltyCalculationType(d["calculation_type"]),
        amount=as_optional_float(d.get("amount")),
        percentage=as_optional_float(d.get("percentage")),
        hourly_rate_multiplier=as_optional_float(d.get("hourly_rate_multiplier")),
        daily_rate_multiplier=as_optional_float(d.get("daily_rate_multiplier")),
        threshold=_threshold(d.get("threshold")),
        grace_period_minutes=_int_or_none(d.get("grace_period_minutes")),
        is_progressive=bool(d.get("is_progressive", False)),
        progressive_rules=tuple(_rule(r) for r in d.get("progressive_rules") or ()),
        applicable_departments=tuple(d.get("applicable_departments") or ()),
        applicable_positions=tuple(d.get("applicable_positions") or ()),
        applicable_employment_types=tuple(d.get("applicable_employment_types") or ()),
        auto_apply=bool(d.get("auto_apply", True)),
        requires_approval=bool(d.get("requires_approval", False)),
        max_penalty_per_month=as_optional_float(d.get("max_penalty_per_month")),
        is_active=bool(d.get("is_active", True)),
        effective_date=as_date(d.get("effective_date")),
        expiry_date=as_date(d.get("expiry_date")),
    )


class MySQLPenaltyPolicyRepository(PenaltyPolicyRepository):
    def __init__(self, store: DocumentStore):
        self._store = store

    def list_active(self) -> Sequence[PenaltyPolicy]:
        docs = self._store.query(PENALTY_POLICIES_COLLECTION, [Filter("is_active", "==", True)], order_by="name")
        return [policy_from_document(d) for d in docs]

    def get_by_id(self, policy_id: str) -> Optional[PenaltyPolicy]:
        doc = self._store.get(PENALTY_POLICIES_COLLECTION, policy_id)
        return policy_from_document(doc) if doc else None
