"""
Deadline calculator tests
"""
import pytest
from dataclasses import FrozenInstanceError
from datetime import date, datetime, timedelta

from privacydesk.core.deadline import (
    DeadlineState, SlaPolicy, calculate_days_remaining, classify_risk, compute_deadline, plan_milestones,
    paused_days_between, validate_extension,
)
from privacydesk.core.enums import CalendarPolicy, MilestoneType, RiskLevel
from privacydesk.exceptions.errors import InvalidArgumentError
from tests.helpers import utc

RECEIVED = utc(2026, 3, 2, 9)


def day(n, hours=0):
    return RECEIVED + timedelta(days=n, hours=hours)


def deadline_at(now, extension_days=0, total_paused_days=0, threshold=7, **kwargs):
    return compute_deadline(
        received_at=RECEIVED,
        base_sla_days=30,
        extension_days=extension_days,
        total_paused_days=total_paused_days,
        now=now,
        due_soon_threshold_days=threshold,
        **kwargs
    )


class TestScenarios:
    """Worked examples for a 30 day calendar SLA"""

    def test_due_soon_without_extension(self):
        result = deadline_at(day(25))
        assert result.base_due_at == day(30)
        assert result.effective_due_at == day(30)
        assert result.days_remaining == 5
        assert result.current_risk == RiskLevel.YELLOW

    def test_extension_moves_due_date(self):
        result = deadline_at(day(25), extension_days=14)
        assert result.base_due_at == day(30)
        assert result.effective_due_at == day(44)
        assert result.days_remaining == 19
        assert result.current_risk == RiskLevel.GREEN

    def test_pause_moves_due_date(self):
        result = deadline_at(day(25), total_paused_days=10)
        assert result.effective_due_at == day(40)
        assert result.days_remaining == 15

    def test_overdue(self):
        result = deadline_at(day(31))
        assert result.days_remaining == -1
        assert result.current_risk == RiskLevel.RED

    def test_business_day_policy(self):
        result = deadline_at(day(0), calendar_policy=CalendarPolicy.BUSINESS_DAYS)
        # 30 business days from a Monday is six weeks later
        assert result.effective_due_at == day(42)

    def test_naive_datetimes_are_utc(self):
        naive = deadline_at(datetime(2026, 3, 27, 9))
        assert naive == deadline_at(day(25))

    def test_idempotent(self):
        assert deadline_at(day(12), 5, 3) == deadline_at(day(12), 5, 3)


class TestDaysRemaining:
    """Whole days, floored"""

    def test_partial_day_left_counts_as_zero(self):
        assert calculate_days_remaining(day(30), day(29, hours=23)) == 0

    def test_partial_day_late_counts_as_overdue(self):
        assert calculate_days_remaining(day(30), day(30, hours=1)) == -1

    def test_due_instant(self):
        assert calculate_days_remaining(day(30), day(30)) == 0


class TestRiskBands:
    """RED < 0 <= YELLOW <= threshold < GREEN"""

    @pytest.mark.parametrize("days_remaining", range(-10, 20))
    def test_every_value_in_exactly_one_band(self, days_remaining):
        risk = classify_risk(days_remaining, 7)
        if days_remaining < 0:
            assert risk == RiskLevel.RED
        elif days_remaining <= 7:
            assert risk == RiskLevel.YELLOW
        else:
            assert risk == RiskLevel.GREEN

    def test_boundaries(self):
        assert classify_risk(-1, 7) == RiskLevel.RED
        assert classify_risk(0, 7) == RiskLevel.YELLOW
        assert classify_risk(7, 7) == RiskLevel.YELLOW
        assert classify_risk(8, 7) == RiskLevel.GREEN

    def test_zero_threshold(self):
        assert classify_risk(0, 0) == RiskLevel.YELLOW
        assert classify_risk(1, 0) == RiskLevel.GREEN


class TestInvalidInputs:

    @pytest.mark.parametrize("field", ["extension_days", "total_paused_days", "threshold"])
    def test_negative_counters_rejected(self, field):
        with pytest.raises(InvalidArgumentError):
            deadline_at(day(1), **{field: -1})

    def test_policy_requires_positive_sla(self):
        with pytest.raises(InvalidArgumentError):
            SlaPolicy(base_sla_days=0)

    def test_policy_rejects_unknown_calendar(self):
        with pytest.raises(InvalidArgumentError):
            SlaPolicy(calendar_policy="LUNAR")

    def test_policy_freezes_holidays(self):
        policy = SlaPolicy(holidays=[date(2026, 12, 25)])
        assert policy.holidays == frozenset({date(2026, 12, 25)})


class TestPauseLength:

    def test_whole_days(self):
        assert paused_days_between(day(5), day(15)) == 10

    def test_partial_day_rounds_up(self):
        assert paused_days_between(day(5), day(14, hours=1)) == 10

    def test_resume_before_pause_is_zero(self):
        assert paused_days_between(day(5), day(4)) == 0


class TestExtensionRule:
    """Extensions are cumulative up to the tenant maximum"""

    def test_first_extension(self):
        assert validate_extension(14, 0, 60) == 14

    def test_cumulative_extension(self):
        assert validate_extension(30, 30, 60) == 60

    def test_beyond_maximum_rejected(self):
        with pytest.raises(InvalidArgumentError, match="maximum of 60"):
            validate_extension(14, 50, 60)

    @pytest.mark.parametrize("requested", [0, -5, True])
    def test_non_positive_rejected(self, requested):
        with pytest.raises(InvalidArgumentError):
            validate_extension(requested, 0, 60)


class TestDeadlineState:

    def test_recomputed_fills_derived_fields(self):
        state = DeadlineState(received_at=RECEIVED, base_sla_days=30)
        fresh = state.recomputed(day(25), 7)
        assert fresh.effective_due_at == day(30)
        assert fresh.days_remaining == 5
        assert fresh.current_risk == RiskLevel.YELLOW
        assert fresh.computed_at == day(25)
        # the source state is untouched
        assert state.effective_due_at is None

    def test_frozen(self):
        state = DeadlineState(received_at=RECEIVED, base_sla_days=30)
        with pytest.raises(FrozenInstanceError):
            state.extension_days = 5

    def test_is_paused(self):
        assert DeadlineState(received_at=RECEIVED, base_sla_days=30, paused_at=day(3)).is_paused
        assert not DeadlineState(received_at=RECEIVED, base_sla_days=30).is_paused

    def test_evaluates_with_own_holidays(self):
        state = DeadlineState(
            received_at=RECEIVED,
            base_sla_days=30,
            calendar_policy=CalendarPolicy.BUSINESS_DAYS,
            holidays=[date(2026, 3, 4)],
        )
        assert state.holidays == frozenset({date(2026, 3, 4)})
        # Mon 2 Mar + 30 business days, Wed 4 Mar skipped
        assert state.evaluate(day(1), 7).effective_due_at == utc(2026, 4, 14, 9)
        assert DeadlineState(
            received_at=RECEIVED, base_sla_days=30, calendar_policy=CalendarPolicy.BUSINESS_DAYS
        ).evaluate(day(1), 7).effective_due_at == utc(2026, 4, 13, 9)


class TestHolidayWindow:

    def test_calendar_policy_keeps_no_holidays(self):
        policy = SlaPolicy(holidays=[date(2026, 3, 4)])
        assert policy.holidays_from(RECEIVED) == frozenset()

    def test_business_days_keep_holidays_from_receipt(self):
        policy = SlaPolicy(
            calendar_policy=CalendarPolicy.BUSINESS_DAYS,
            holidays=[date(2026, 1, 1), date(2026, 3, 2), date(2026, 3, 4)],
        )
        assert policy.holidays_from(RECEIVED) == frozenset({date(2026, 3, 2), date(2026, 3, 4)})


class TestMilestones:

    def test_calendar_offsets(self):
        state = DeadlineState(received_at=RECEIVED, base_sla_days=30)
        plan = plan_milestones(state, SlaPolicy())
        assert [(m.milestone_type, m.planned_due_at) for m in plan] == [
            (MilestoneType.IDV_COMPLETE, day(7)),
            (MilestoneType.COLLECTION_COMPLETE, day(14)),
            (MilestoneType.DRAFT_READY, day(21)),
            (MilestoneType.LEGAL_REVIEW_DONE, day(25)),
            (MilestoneType.RESPONSE_SENT, day(30)),
        ]

    def test_response_lands_on_snapshotted_base_due_date(self):
        state = DeadlineState(received_at=RECEIVED, base_sla_days=20).recomputed(day(0), 7)
        plan = plan_milestones(state, SlaPolicy(base_sla_days=45, milestone_idv_days=3))
        assert plan[0].planned_due_at == day(3)
        assert plan[-1].planned_due_at == state.base_due_at == day(20)

    def test_business_days_skip_weekends_and_holidays(self):
        state = DeadlineState(
            received_at=RECEIVED,
            base_sla_days=30,
            calendar_policy=CalendarPolicy.BUSINESS_DAYS,
            holidays=[date(2026, 3, 4)],
        )
        idv = plan_milestones(state, SlaPolicy())[0]
        # Tue 3, Thu 5, Fri 6, Mon 9, Tue 10, Wed 11, Thu 12
        assert idv.planned_due_at == utc(2026, 3, 12, 9)

    def test_negative_offset_rejected(self):
        with pytest.raises(InvalidArgumentError):
            SlaPolicy(milestone_draft_days=-1)
