from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Sequence

from ..core.enums import PenaltyCalculationType, ViolationType


@dataclass(frozen=True)
class PenaltyThreshold:
    minutes: Optional[int] = None
    occurrences: Optional[int] = None
    days: Optional[int] = None


@dataclass(frozen=True)
class ProgressivePenaltyRule:
    """Step for the n-th occurrence within a month (``to_occurrence`` None = open-ended)."""

    from_occurrence: int
    to_occurrence: Optional[int] = None
    amount: float = 0.0
    percentage: Optional[float] = None
    description: Optional[str] = None

    def matches(self, occurrence: int) -> bool:
        if self.to_occurrence is not None:
            return self.from_occurrence <= occurrence <= self.to_occurrence
        return occurrence >= self.from_occurrence


@dataclass(frozen=True)
class PenaltyPolicy:
    """Externally configured penalty rule (consumed, not owned, here)."""

    policy_id: str
    name: str
    code: str
    violation_type: ViolationType
    calculation_type: PenaltyCalculationType
    amount: Optional[float] = None
    percentage: Optional[float] = None
    hourly_rate_multiplier: Optional[float] = None
    daily_rate_multiplier: Optional[float] = None
    threshold: PenaltyThreshold = field(default_factory=PenaltyThreshold)
    grace_period_minutes: Optional[int] = None
    is_progressive: bool = False
    progressive_rules: Sequence[ProgressivePenaltyRule] = field(default_factory=tuple)
    applicable_departments: Sequence[str] = field(default_factory=tuple)
    applicable_positions: Sequence[str] = field(default_factory=tuple)
    applicable_employment_types: Sequence[str] = field(default_factory=tuple)
    auto_apply: bool = True
    requires_approval: bool = False
    max_penalty_per_month: Optional[float] = None
    is_active: bool = True
    effective_date: Optional[date] = None
    expiry_date: Optional[date] = None


@dataclass(frozen=True)
class EmployeeContext:
    """Minimal employee data the engine needs to match and price policies."""

    employee_id: str
    department_id: Optional[str] = None
    position_id: Optional[str] = None
    employment_type: Optional[str] = None
    base_salary: Optional[float] = None


@dataclass(frozen=True)
class PenaltyCalculationInput:
    policy_id: str
    employee_id: str
    work_date: date
    violation_type: ViolationType
    minutes: Optional[int] = None
    occurrence_count: int = 1
    employee_salary: Optional[float] = None
    hourly_rate: Optional[float] = None
    daily_rate: Optional[float] = None


@dataclass(frozen=True)
class PenaltyCalculationResult:
    should_apply: bool
    amount: float
    reason: str
    is_within_grace_period: bool = False
    is_within_cap: bool = True
    requires_approval: bool = False


@dataclass(frozen=True)
class PenaltyDetail:
    work_date: date
    violation_type: ViolationType
    amount: float
    description: str


@dataclass(frozen=True)
class PenaltySummary:
    total_amount: float
    late_count: int
    early_leave_count: int
    absence_count: int
    no_clock_out_count: int
    details: Sequence[PenaltyDetail] = field(default_factory=tuple)
