# privacydesk/core/lifecycle.py
"""
Case Lifecycle Engine.

Every status change or manual deadline edit goes through here: the state
machine validates, the deadline calculator recomputes, and the result is a
single persistence-ready mutation (new status, deadline fields, at most one
transition record and the deadline history entries) that the persistence
layer applies atomically.
"""
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from privacydesk.core.deadline import (
    DeadlineResult, DeadlineState, MilestonePlan, SlaPolicy, as_utc, paused_days_between,
    plan_milestones, validate_extension,
)
from privacydesk.core.enums import CaseStatus, DeadlineEventType
from privacydesk.core.state_machine import ClockAction, StateMachine, case_state_machine
from privacydesk.exceptions.errors import InvalidArgumentError, InvalidTransitionError, NotFoundError


@dataclass(frozen=True)
class CaseSnapshot:
    """The case state a mutation is computed against"""
    case_id: str
    case_number: str
    status: CaseStatus
    version: int
    deadline: Optional[DeadlineState]


@dataclass(frozen=True)
class TransitionRecord:
    """Immutable ledger entry, one per successful status change"""
    from_status: CaseStatus
    to_status: CaseStatus
    changed_by: str
    reason: Optional[str]
    changed_at: datetime


@dataclass(frozen=True)
class CaseEvent:
    """Change description handed back to the caller for audit/webhook fan-out"""
    event_type: str
    case_id: str
    case_number: str
    from_status: CaseStatus
    to_status: CaseStatus
    changed_by: str
    reason: Optional[str]
    occurred_at: datetime
    paused_days_added: int = 0
    extension_days_added: int = 0


@dataclass(frozen=True)
class DeadlineEventRecord:
    """Durable deadline history entry; details hold JSON-safe values only"""
    event_type: DeadlineEventType
    description: str
    changed_by: str
    occurred_at: datetime
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class LifecycleResult:
    status: CaseStatus
    deadline: DeadlineState
    transition: Optional[TransitionRecord]
    event: CaseEvent
    expected_version: int
    deadline_events: Tuple[DeadlineEventRecord, ...] = ()


def _day(value: datetime) -> str:
    return as_utc(value).date().isoformat()


class CaseLifecycleEngine:
    """Orchestrates state machine and deadline calculator for one tenant policy"""

    def __init__(self, policy: SlaPolicy, state_machine: StateMachine = case_state_machine):
        self.policy = policy
        self.state_machine = state_machine

    def _recompute(self, deadline: DeadlineState, now: datetime) -> DeadlineState:
        return deadline.recomputed(now, self.policy.due_soon_threshold_days)

    @staticmethod
    def _require_deadline(snapshot: CaseSnapshot) -> DeadlineState:
        if snapshot.deadline is None:
            raise NotFoundError(f"Deadline not initialized for case {snapshot.case_number}")
        return snapshot.deadline

    def initial_deadline(self, received_at: datetime, now: datetime) -> DeadlineState:
        """Deadline created at intake from the tenant's current policy and calendar"""
        received_at = as_utc(received_at)
        deadline = DeadlineState(
            received_at=received_at,
            base_sla_days=self.policy.base_sla_days,
            calendar_policy=self.policy.calendar_policy,
            holidays=self.policy.holidays_from(received_at),
        )
        return self._recompute(deadline, now)

    def initial_milestones(self, deadline: DeadlineState) -> List[MilestonePlan]:
        return plan_milestones(deadline, self.policy)

    @staticmethod
    def initialized_event(deadline: DeadlineState, actor_id: str, now: datetime) -> DeadlineEventRecord:
        return DeadlineEventRecord(
            event_type=DeadlineEventType.CREATED,
            description=f"Deadline initialized: due {_day(deadline.effective_due_at)}",
            changed_by=actor_id,
            occurred_at=as_utc(now),
            details={
                "effective_due_at": as_utc(deadline.effective_due_at).isoformat(),
                "base_sla_days": deadline.base_sla_days,
                "calendar_policy": deadline.calendar_policy.value,
                "days_remaining": deadline.days_remaining,
            },
        )

    def evaluate(self, snapshot: CaseSnapshot, now: datetime) -> DeadlineResult:
        """Read-time recomputation; identical to what a write would persist"""
        deadline = self._require_deadline(snapshot)
        return deadline.evaluate(now, self.policy.due_soon_threshold_days)

    def transition(
            self,
            snapshot: CaseSnapshot,
            to_status,
            actor_id: str,
            reason: Optional[str],
            now: datetime
    ) -> LifecycleResult:
        """
        Validate and apply a status change.

        Raises:
            InvalidTransitionError: illegal pair or double pause
            NotFoundError: the case has no deadline
            InvalidArgumentError: missing actor
        """
        if not actor_id:
            raise InvalidArgumentError("An actor id is required for status transitions")

        deadline = self._require_deadline(snapshot)
        now = as_utc(now)
        decision = self.state_machine.decide(snapshot.status, to_status, is_paused=deadline.is_paused)

        paused_days_added = 0
        resumed = False
        history = []
        if decision.clock_action == ClockAction.PAUSE:
            deadline = replace(deadline, paused_at=now, pause_reason=reason)
            history.append(DeadlineEventRecord(
                event_type=DeadlineEventType.PAUSED,
                description=f"Clock paused on entering {decision.to_status.value}"
                            + (f". Reason: {reason}" if reason else ""),
                changed_by=actor_id,
                occurred_at=now,
                details={"status": decision.to_status.value, "reason": reason},
            ))
        elif decision.clock_action == ClockAction.RESUME and deadline.paused_at is not None:
            resumed = True
            paused_days_added = paused_days_between(deadline.paused_at, now)
            deadline = replace(
                deadline,
                paused_at=None,
                pause_reason=None,
                total_paused_days=deadline.total_paused_days + paused_days_added,
            )

        deadline = self._recompute(deadline, now)

        if resumed:
            history.append(DeadlineEventRecord(
                event_type=DeadlineEventType.RESUMED,
                description=f"Clock resumed after {paused_days_added} day(s) pause. "
                            f"Due date shifted to {_day(deadline.effective_due_at)}",
                changed_by=actor_id,
                occurred_at=now,
                details={
                    "paused_days": paused_days_added,
                    "total_paused_days": deadline.total_paused_days,
                    "effective_due_at": deadline.effective_due_at.isoformat(),
                },
            ))

        record = TransitionRecord(
            from_status=decision.from_status,
            to_status=decision.to_status,
            changed_by=actor_id,
            reason=reason,
            changed_at=now,
        )
        event = CaseEvent(
            event_type="case.transitioned",
            case_id=snapshot.case_id,
            case_number=snapshot.case_number,
            from_status=decision.from_status,
            to_status=decision.to_status,
            changed_by=actor_id,
            reason=reason,
            occurred_at=now,
            paused_days_added=paused_days_added,
        )
        return LifecycleResult(
            status=decision.to_status,
            deadline=deadline,
            transition=record,
            event=event,
            expected_version=snapshot.version,
            deadline_events=tuple(history),
        )

    def extend(
            self,
            snapshot: CaseSnapshot,
            extension_days: int,
            actor_id: str,
            reason: Optional[str],
            now: datetime
    ) -> LifecycleResult:
        """
        Apply a statutory extension. Status is unchanged, so no transition
        record is produced; the EXTENDED history entry keeps each request's
        justification.
        """
        if not actor_id:
            raise InvalidArgumentError("An actor id is required for deadline extensions")

        deadline = self._require_deadline(snapshot)
        status = CaseStatus(snapshot.status)
        if self.state_machine.is_terminal(status):
            raise InvalidTransitionError(
                status, status, detail=f"Cannot extend the deadline of a {status.value} case"
            )

        now = as_utc(now)
        total = validate_extension(extension_days, deadline.extension_days, self.policy.extension_max_days)
        deadline = self._recompute(
            replace(deadline, extension_days=total, extension_reason=reason, extension_applied_at=now),
            now,
        )

        event = CaseEvent(
            event_type="deadline.extended",
            case_id=snapshot.case_id,
            case_number=snapshot.case_number,
            from_status=status,
            to_status=status,
            changed_by=actor_id,
            reason=reason,
            occurred_at=now,
            extension_days_added=extension_days,
        )
        extended = DeadlineEventRecord(
            event_type=DeadlineEventType.EXTENDED,
            description=f"Extension of {extension_days} days applied (total: {total})"
                        + (f". Reason: {reason}" if reason else ""),
            changed_by=actor_id,
            occurred_at=now,
            details={
                "extension_days": extension_days,
                "total_extension_days": total,
                "reason": reason,
                "effective_due_at": deadline.effective_due_at.isoformat(),
            },
        )
        return LifecycleResult(
            status=status,
            deadline=deadline,
            transition=None,
            event=event,
            expected_version=snapshot.version,
            deadline_events=(extended,),
        )
