# privacydesk/core/deadline.py
"""
Deadline Calculator - legal due dates, extensions, pauses and risk bands.

GDPR Art. 12: respond within one month of receipt; extension of up to two
further months if the request is complex or numerous.

effective_due_at, days_remaining and current_risk are pure functions of
(received_at, base_sla_days, extension_days, total_paused_days, now,
due_soon_threshold_days, calendar_policy, holidays). Every surface - the
case view, the export and the dashboard - goes through compute_deadline so
they always agree.

The holiday set a deadline counts with is copied onto the deadline at intake.
Editing the tenant calendar afterwards never moves an existing due date.
"""
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, List, Optional, FrozenSet, Union

from privacydesk.core.calendar import add_duration, freeze_holidays
from privacydesk.core.enums import CalendarPolicy, MilestoneType, RiskLevel
from privacydesk.exceptions.errors import InvalidArgumentError

ONE_DAY = timedelta(days=1)


def as_utc(value: Union[date, datetime]) -> datetime:
    """Naive datetimes are UTC; bare dates are midnight UTC"""
    if not isinstance(value, datetime):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _require_non_negative(name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise InvalidArgumentError(f"{name} must be >= 0, got {value}")
    return value


@dataclass(frozen=True)
class SlaPolicy:
    """Per-tenant SLA configuration handed to the engine explicitly"""
    base_sla_days: int = 30
    due_soon_threshold_days: int = 7
    extension_max_days: int = 60
    calendar_policy: CalendarPolicy = CalendarPolicy.CALENDAR
    holidays: FrozenSet[date] = field(default_factory=frozenset)
    milestone_idv_days: int = 7
    milestone_collection_days: int = 14
    milestone_draft_days: int = 21
    milestone_legal_days: int = 25

    def __post_init__(self):
        if _require_non_negative("base_sla_days", self.base_sla_days) == 0:
            raise InvalidArgumentError("base_sla_days must be at least 1")
        for name in ("due_soon_threshold_days", "extension_max_days", "milestone_idv_days",
                     "milestone_collection_days", "milestone_draft_days", "milestone_legal_days"):
            _require_non_negative(name, getattr(self, name))
        try:
            object.__setattr__(self, "calendar_policy", CalendarPolicy(self.calendar_policy))
        except ValueError:
            raise InvalidArgumentError(f"Unknown calendar policy: {self.calendar_policy!r}")
        object.__setattr__(self, "holidays", freeze_holidays(self.holidays))

    def holidays_from(self, start: Union[date, datetime]) -> FrozenSet[date]:
        """Holidays a deadline starting at `start` can be affected by"""
        if self.calendar_policy != CalendarPolicy.BUSINESS_DAYS:
            return frozenset()
        first = as_utc(start).date()
        return frozenset(h for h in self.holidays if h >= first)


@dataclass(frozen=True)
class DeadlineResult:
    base_due_at: datetime
    effective_due_at: datetime
    days_remaining: int
    current_risk: RiskLevel


@dataclass(frozen=True)
class DeadlineState:
    """
    Stored deadline inputs plus the derived fields last computed from them.

    base_sla_days, calendar_policy and holidays are snapshotted at intake so
    a later tenant config or calendar change never moves an existing legal
    due date.
    """
    received_at: datetime
    base_sla_days: int
    calendar_policy: CalendarPolicy = CalendarPolicy.CALENDAR
    extension_days: int = 0
    extension_reason: Optional[str] = None
    extension_applied_at: Optional[datetime] = None
    total_paused_days: int = 0
    paused_at: Optional[datetime] = None
    pause_reason: Optional[str] = None
    holidays: FrozenSet[date] = frozenset()

    # Derived
    base_due_at: Optional[datetime] = None
    effective_due_at: Optional[datetime] = None
    current_risk: Optional[RiskLevel] = None
    days_remaining: Optional[int] = None
    computed_at: Optional[datetime] = None

    def __post_init__(self):
        object.__setattr__(self, "holidays", freeze_holidays(self.holidays))

    @property
    def is_paused(self) -> bool:
        return self.paused_at is not None

    def evaluate(self, now: datetime, due_soon_threshold_days: int) -> DeadlineResult:
        return compute_deadline(
            received_at=self.received_at,
            base_sla_days=self.base_sla_days,
            extension_days=self.extension_days,
            total_paused_days=self.total_paused_days,
            now=now,
            due_soon_threshold_days=due_soon_threshold_days,
            calendar_policy=self.calendar_policy,
            holidays=self.holidays,
        )

    def recomputed(self, now: datetime, due_soon_threshold_days: int) -> "DeadlineState":
        """Copy with derived fields refreshed; the only way they get set"""
        result = self.evaluate(now, due_soon_threshold_days)
        return replace(
            self,
            base_due_at=result.base_due_at,
            effective_due_at=result.effective_due_at,
            current_risk=result.current_risk,
            days_remaining=result.days_remaining,
            computed_at=as_utc(now),
        )


def classify_risk(days_remaining: int, due_soon_threshold_days: int) -> RiskLevel:
    """RED when overdue, YELLOW within the due-soon window, GREEN otherwise"""
    if days_remaining < 0:
        return RiskLevel.RED
    if days_remaining <= due_soon_threshold_days:
        return RiskLevel.YELLOW
    return RiskLevel.GREEN


def calculate_days_remaining(effective_due_at: datetime, now: datetime) -> int:
    """Whole days until the due date, floored; negative means overdue"""
    return (as_utc(effective_due_at) - as_utc(now)) // ONE_DAY


def paused_days_between(paused_at: datetime, resumed_at: datetime) -> int:
    """Elapsed days of a pause window, rounded up, never negative"""
    elapsed = as_utc(resumed_at) - as_utc(paused_at)
    if elapsed <= timedelta(0):
        return 0
    return -((-elapsed) // ONE_DAY)


def compute_deadline(
        received_at: datetime,
        base_sla_days: int,
        extension_days: int,
        total_paused_days: int,
        now: datetime,
        due_soon_threshold_days: int,
        calendar_policy: CalendarPolicy = CalendarPolicy.CALENDAR,
        holidays: Optional[Iterable[date]] = None
) -> DeadlineResult:
    """
    Compute the effective due date, days remaining and risk band.

    Raises:
        InvalidArgumentError: any negative day count or unknown policy
    """
    _require_non_negative("base_sla_days", base_sla_days)
    _require_non_negative("extension_days", extension_days)
    _require_non_negative("total_paused_days", total_paused_days)
    _require_non_negative("due_soon_threshold_days", due_soon_threshold_days)

    frozen = freeze_holidays(holidays)
    base_due_at = add_duration(as_utc(received_at), base_sla_days, calendar_policy, frozen)
    effective_due_at = add_duration(base_due_at, extension_days + total_paused_days, calendar_policy, frozen)
    days_remaining = calculate_days_remaining(effective_due_at, now)

    return DeadlineResult(
        base_due_at=base_due_at,
        effective_due_at=effective_due_at,
        days_remaining=days_remaining,
        current_risk=classify_risk(days_remaining, due_soon_threshold_days),
    )


def validate_extension(requested_days: int, existing_extension_days: Optional[int], max_extension_days: int) -> int:
    """
    Business rule for the extend action.

    Extensions are cumulative; the running total may not pass the tenant's
    maximum. Returns the new total.
    """
    if isinstance(requested_days, bool) or not isinstance(requested_days, int) or requested_days <= 0:
        raise InvalidArgumentError("Extension days must be a positive integer")

    current = existing_extension_days or 0
    total_after = current + requested_days
    if total_after > max_extension_days:
        raise InvalidArgumentError(
            f"Extension would exceed maximum of {max_extension_days} days "
            f"(current: {current}, requested: {requested_days})"
        )
    return total_after


@dataclass(frozen=True)
class MilestonePlan:
    milestone_type: MilestoneType
    planned_due_at: datetime


def plan_milestones(deadline: DeadlineState, policy: SlaPolicy) -> List[MilestonePlan]:
    """
    Internal checkpoints counted from receipt with the deadline's own calendar
    and holiday snapshot. RESPONSE_SENT lands on the base due date.
    """
    offsets = (
        (MilestoneType.IDV_COMPLETE, policy.milestone_idv_days),
        (MilestoneType.COLLECTION_COMPLETE, policy.milestone_collection_days),
        (MilestoneType.DRAFT_READY, policy.milestone_draft_days),
        (MilestoneType.LEGAL_REVIEW_DONE, policy.milestone_legal_days),
        (MilestoneType.RESPONSE_SENT, deadline.base_sla_days),
    )
    received_at = as_utc(deadline.received_at)
    return [
        MilestonePlan(
            milestone_type=milestone_type,
            planned_due_at=add_duration(received_at, days, deadline.calendar_policy, deadline.holidays),
        )
        for milestone_type, days in offsets
    ]
