# privacydesk/db/models/deadline.py
"""Case deadline model - one row per case, created at intake - with its milestones and history"""
from datetime import date

from sqlalchemy import Column, Integer, String, Text, Enum, DateTime, ForeignKey, Index, JSON, UniqueConstraint
from sqlalchemy.orm import relationship

from privacydesk.db.models.base import Base, TimestampMixin, UUIDMixin
from privacydesk.core.deadline import DeadlineState, as_utc
from privacydesk.core.enums import CalendarPolicy, DeadlineEventType, MilestoneType, RiskLevel
from privacydesk.utils.helpers import utc_now


def _utc(value):
    return as_utc(value) if value is not None else None


class CaseDeadline(Base, TimestampMixin):
    __tablename__ = "case_deadlines"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String(64), nullable=False, index=True)
    case_id = Column(Integer, ForeignKey("dsar_cases.id", ondelete="CASCADE"), nullable=False, unique=True)

    # Inputs
    received_at = Column(DateTime(timezone=True), nullable=False)
    base_sla_days = Column(Integer, nullable=False)
    calendar_policy = Column(Enum(CalendarPolicy), nullable=False, default=CalendarPolicy.CALENDAR)
    extension_days = Column(Integer, nullable=False, default=0)
    extension_reason = Column(Text, nullable=True)
    extension_applied_at = Column(DateTime(timezone=True), nullable=True)
    total_paused_days = Column(Integer, nullable=False, default=0)
    paused_at = Column(DateTime(timezone=True), nullable=True)
    pause_reason = Column(Text, nullable=True)
    # ISO dates of the tenant holidays in force at intake
    holidays = Column(JSON, nullable=False, default=list)

    # Derived, written only from a calculator result
    base_due_at = Column(DateTime(timezone=True), nullable=False)
    effective_due_at = Column(DateTime(timezone=True), nullable=False, index=True)
    current_risk = Column(Enum(RiskLevel), nullable=False, default=RiskLevel.GREEN)
    days_remaining = Column(Integer, nullable=False)
    computed_at = Column(DateTime(timezone=True), nullable=False)

    case = relationship("Case", back_populates="deadline")

    def to_state(self) -> DeadlineState:
        """Stored row as a DeadlineState; SQLite hands datetimes back naive, so they are pinned to UTC"""
        return DeadlineState(
            received_at=_utc(self.received_at),
            base_sla_days=self.base_sla_days,
            calendar_policy=self.calendar_policy,
            extension_days=self.extension_days or 0,
            extension_reason=self.extension_reason,
            extension_applied_at=_utc(self.extension_applied_at),
            total_paused_days=self.total_paused_days or 0,
            paused_at=_utc(self.paused_at),
            pause_reason=self.pause_reason,
            holidays=frozenset(date.fromisoformat(d) for d in (self.holidays or [])),
            base_due_at=_utc(self.base_due_at),
            effective_due_at=_utc(self.effective_due_at),
            current_risk=self.current_risk,
            days_remaining=self.days_remaining,
            computed_at=_utc(self.computed_at),
        )

    def apply_state(self, state: DeadlineState) -> None:
        """Copy a recomputed DeadlineState onto the row"""
        if state.effective_due_at is None:
            raise ValueError("Deadline state must be recomputed before it is persisted")
        for column in (
                "received_at", "base_sla_days", "calendar_policy", "extension_days",
                "extension_reason", "extension_applied_at", "total_paused_days", "paused_at",
                "pause_reason", "base_due_at", "effective_due_at", "current_risk",
                "days_remaining", "computed_at",
        ):
            setattr(self, column, getattr(state, column))
        self.holidays = sorted(d.isoformat() for d in state.holidays)

    def __repr__(self):
        return f"<CaseDeadline case_id={self.case_id} effective_due_at={self.effective_due_at}>"


class CaseMilestone(Base, TimestampMixin):
    """Internal checkpoint planned at intake; never moved afterwards"""
    __tablename__ = "case_milestones"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String(64), nullable=False, index=True)
    case_id = Column(Integer, ForeignKey("dsar_cases.id", ondelete="CASCADE"), nullable=False)
    milestone_type = Column(Enum(MilestoneType), nullable=False)
    planned_due_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("case_id", "milestone_type", name="uq_milestone_case_type"),
    )

    def __repr__(self):
        return f"<CaseMilestone case_id={self.case_id} {self.milestone_type} {self.planned_due_at}>"


class DeadlineEvent(Base, UUIDMixin):
    """Append-only deadline history: initialization, extensions, pauses and resumes"""
    __tablename__ = "deadline_events"

    tenant_id = Column(String(64), nullable=False)
    case_id = Column(Integer, ForeignKey("dsar_cases.id", ondelete="CASCADE"), nullable=False)
    event_type = Column(Enum(DeadlineEventType), nullable=False)
    description = Column(Text, nullable=False)
    changed_by = Column(String(128), nullable=False)
    details = Column(JSON, nullable=False, default=dict)
    occurred_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    __table_args__ = (
        Index("idx_deadline_event_case_occurred", "case_id", "occurred_at"),
    )

    def __repr__(self):
        return f"<DeadlineEvent case_id={self.case_id} {self.event_type}>"
