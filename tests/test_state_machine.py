"""
Case status state machine tests
"""
import pytest
from itertools import product

from privacydesk.core.enums import CaseStatus
from privacydesk.core.state_machine import (
    DEFAULT_TRANSITIONS, ClockAction, StateMachine, case_state_machine, get_allowed_transitions,
    is_open_status, is_valid_transition,
)
from privacydesk.exceptions.errors import InvalidTransitionError

S = CaseStatus


class TestAdjacency:

    @pytest.mark.parametrize("source,target", list(product(CaseStatus, CaseStatus)))
    def test_only_listed_pairs_are_valid(self, source, target):
        assert is_valid_transition(source, target) == (target in DEFAULT_TRANSITIONS[source])

    def test_workflow_paths(self):
        assert is_valid_transition(S.NEW, S.IDENTITY_VERIFICATION)
        assert is_valid_transition(S.IN_PROGRESS, S.PENDING_CLARIFICATION)
        assert is_valid_transition(S.PENDING_CLARIFICATION, S.IN_PROGRESS)
        assert is_valid_transition(S.READY_TO_CLOSE, S.IN_PROGRESS)

    def test_terminal_statuses_have_no_exits(self):
        assert get_allowed_transitions(S.CLOSED) == []
        assert get_allowed_transitions(S.REJECTED) == []
        assert case_state_machine.is_terminal(S.CLOSED)
        assert not case_state_machine.is_terminal(S.NEW)
        assert not is_open_status(S.REJECTED)

    def test_allowed_in_declaration_order(self):
        assert get_allowed_transitions(S.NEW) == [S.IDENTITY_VERIFICATION, S.INTAKE_TRIAGE, S.REJECTED]

    def test_string_values_accepted(self):
        assert is_valid_transition("IN_PROGRESS", "READY_TO_CLOSE")
        assert not is_valid_transition("IN_PROGRESS", "ARCHIVED")


class TestDecisions:

    def test_entering_pause_status_pauses(self):
        decision = case_state_machine.decide(S.IN_PROGRESS, S.PENDING_CLARIFICATION)
        assert decision.clock_action == ClockAction.PAUSE

    def test_leaving_pause_status_resumes(self):
        decision = case_state_machine.decide(S.PENDING_CLARIFICATION, S.IN_PROGRESS, is_paused=True)
        assert decision.clock_action == ClockAction.RESUME

    def test_rejecting_paused_case_resumes(self):
        decision = case_state_machine.decide(S.PENDING_CLARIFICATION, S.REJECTED, is_paused=True)
        assert decision.clock_action == ClockAction.RESUME

    def test_plain_transition(self):
        decision = case_state_machine.decide(S.NEW, S.INTAKE_TRIAGE)
        assert decision.clock_action == ClockAction.NONE
        assert (decision.from_status, decision.to_status) == (S.NEW, S.INTAKE_TRIAGE)

    def test_double_pause_rejected(self):
        with pytest.raises(InvalidTransitionError, match="already paused"):
            case_state_machine.decide(S.IN_PROGRESS, S.PENDING_CLARIFICATION, is_paused=True)

    def test_invalid_transition_reports_allowed(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            case_state_machine.decide(S.CLOSED, S.IN_PROGRESS)
        assert exc_info.value.from_status == "CLOSED"
        assert exc_info.value.to_status == "IN_PROGRESS"
        assert exc_info.value.allowed == []

    def test_self_transition_rejected(self):
        with pytest.raises(InvalidTransitionError):
            case_state_machine.decide(S.IN_PROGRESS, S.IN_PROGRESS)


class TestCustomTable:
    """The table is data; other workflows plug in without code changes"""

    def test_custom_transitions(self):
        machine = StateMachine(
            transitions={S.NEW: [S.IN_PROGRESS], S.IN_PROGRESS: [S.CLOSED], S.CLOSED: []},
            pause_statuses=[],
        )
        assert machine.is_valid_transition(S.NEW, S.IN_PROGRESS)
        assert not machine.is_valid_transition(S.NEW, S.INTAKE_TRIAGE)
        assert machine.decide(S.IN_PROGRESS, S.CLOSED).clock_action == ClockAction.NONE

    def test_listed_self_transition_kept(self):
        machine = StateMachine(
            transitions={S.IN_PROGRESS: [S.IN_PROGRESS, S.CLOSED], S.CLOSED: []},
            pause_statuses=[],
        )
        assert machine.is_valid_transition(S.IN_PROGRESS, S.IN_PROGRESS)
        assert machine.get_allowed_transitions(S.IN_PROGRESS) == [S.IN_PROGRESS, S.CLOSED]
        assert machine.decide(S.IN_PROGRESS, S.IN_PROGRESS).clock_action == ClockAction.NONE
        # the shipped workflow lists none
        assert not case_state_machine.is_valid_transition(S.IN_PROGRESS, S.IN_PROGRESS)
