# privacydesk/core/state_machine.py
"""
Case status state machine.

Table-driven: the adjacency map decides everything, there is no per-state
branching. Entering a pause status starts the deadline clock's pause window,
leaving it closes the window. The machine only reports that as a ClockAction;
folding it into the deadline is the lifecycle engine's job.
"""
import enum
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional

from privacydesk.core.enums import CaseStatus
from privacydesk.exceptions.errors import InvalidTransitionError


DEFAULT_TRANSITIONS: Dict[CaseStatus, FrozenSet[CaseStatus]] = {
    CaseStatus.NEW: frozenset({
        CaseStatus.IDENTITY_VERIFICATION, CaseStatus.INTAKE_TRIAGE, CaseStatus.REJECTED,
    }),
    CaseStatus.IDENTITY_VERIFICATION: frozenset({CaseStatus.INTAKE_TRIAGE, CaseStatus.REJECTED}),
    CaseStatus.INTAKE_TRIAGE: frozenset({CaseStatus.IN_PROGRESS, CaseStatus.REJECTED}),
    CaseStatus.IN_PROGRESS: frozenset({
        CaseStatus.PENDING_CLARIFICATION, CaseStatus.READY_TO_CLOSE, CaseStatus.REJECTED,
    }),
    CaseStatus.PENDING_CLARIFICATION: frozenset({CaseStatus.IN_PROGRESS, CaseStatus.REJECTED}),
    # Send back to IN_PROGRESS when the response needs more work
    CaseStatus.READY_TO_CLOSE: frozenset({
        CaseStatus.CLOSED, CaseStatus.IN_PROGRESS, CaseStatus.REJECTED,
    }),
    CaseStatus.CLOSED: frozenset(),
    CaseStatus.REJECTED: frozenset(),
}

DEFAULT_PAUSE_STATUSES: FrozenSet[CaseStatus] = frozenset({CaseStatus.PENDING_CLARIFICATION})

TERMINAL_STATUSES: FrozenSet[CaseStatus] = frozenset({CaseStatus.CLOSED, CaseStatus.REJECTED})

STATUS_LABELS: Dict[CaseStatus, str] = {
    CaseStatus.NEW: "New",
    CaseStatus.IDENTITY_VERIFICATION: "Identity Verification",
    CaseStatus.INTAKE_TRIAGE: "Intake & Triage",
    CaseStatus.IN_PROGRESS: "In Progress",
    CaseStatus.PENDING_CLARIFICATION: "Pending Clarification",
    CaseStatus.READY_TO_CLOSE: "Ready to Close",
    CaseStatus.CLOSED: "Closed",
    CaseStatus.REJECTED: "Rejected",
}


class ClockAction(str, enum.Enum):
    NONE = "none"
    PAUSE = "pause"
    RESUME = "resume"


@dataclass(frozen=True)
class TransitionDecision:
    from_status: CaseStatus
    to_status: CaseStatus
    clock_action: ClockAction


class StateMachine:
    """Validate case status transitions against an adjacency table"""

    def __init__(
            self,
            transitions: Optional[Mapping[CaseStatus, Iterable[CaseStatus]]] = None,
            pause_statuses: Optional[Iterable[CaseStatus]] = None
    ):
        # Self-loops are valid only where the table lists them, e.g. a retried step
        table = transitions if transitions is not None else DEFAULT_TRANSITIONS
        self.transitions: Dict[CaseStatus, FrozenSet[CaseStatus]] = {
            CaseStatus(source): frozenset(CaseStatus(t) for t in targets)
            for source, targets in table.items()
        }
        self.pause_statuses: FrozenSet[CaseStatus] = frozenset(
            CaseStatus(s) for s in (pause_statuses if pause_statuses is not None else DEFAULT_PAUSE_STATUSES)
        )

    @staticmethod
    def _coerce(status) -> Optional[CaseStatus]:
        try:
            return CaseStatus(status)
        except ValueError:
            return None

    def is_valid_transition(self, current_status, new_status) -> bool:
        """Check if a status transition is listed in the table"""
        current = self._coerce(current_status)
        new = self._coerce(new_status)
        if current is None or new is None:
            return False
        return new in self.transitions.get(current, frozenset())

    def get_allowed_transitions(self, current_status) -> List[CaseStatus]:
        """Allowed targets in declaration order of the status enum"""
        current = self._coerce(current_status)
        allowed = self.transitions.get(current, frozenset()) if current else frozenset()
        return [status for status in CaseStatus if status in allowed]

    def is_terminal(self, status) -> bool:
        current = self._coerce(status)
        return current is not None and not self.transitions.get(current)

    def decide(self, current_status, new_status, is_paused: bool = False) -> TransitionDecision:
        """
        Validate a transition and work out its effect on the deadline clock.

        Raises:
            InvalidTransitionError: pair not in the table, or a second pause
                window would be opened while one is still running
        """
        if not self.is_valid_transition(current_status, new_status):
            raise InvalidTransitionError(
                current_status, new_status, allowed=self.get_allowed_transitions(current_status)
            )

        current = CaseStatus(current_status)
        new = CaseStatus(new_status)

        if new in self.pause_statuses:
            if is_paused:
                raise InvalidTransitionError(
                    current, new,
                    allowed=self.get_allowed_transitions(current),
                    detail=f"Cannot enter {new.value}: deadline clock is already paused",
                )
            return TransitionDecision(current, new, ClockAction.PAUSE)

        if current in self.pause_statuses or is_paused:
            return TransitionDecision(current, new, ClockAction.RESUME)

        return TransitionDecision(current, new, ClockAction.NONE)


case_state_machine = StateMachine()


def is_valid_transition(current_status, new_status) -> bool:
    return case_state_machine.is_valid_transition(current_status, new_status)


def get_allowed_transitions(current_status) -> List[CaseStatus]:
    return case_state_machine.get_allowed_transitions(current_status)


def is_open_status(status) -> bool:
    return CaseStatus(status) not in TERMINAL_STATUSES
