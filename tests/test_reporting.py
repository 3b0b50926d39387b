"""
SLA aggregation and export tests
"""
import pytest
from datetime import timedelta

from privacydesk.core.deadline import DeadlineState, SlaPolicy
from privacydesk.core.enums import CasePriority, CaseStatus, CaseType, RiskLevel
from privacydesk.core.reporting import (
    REPORT_COLUMNS, CaseRecord, build_rows, build_summary, round_half_up, rows_to_csv,
)
from tests.helpers import utc

NOW = utc(2026, 6, 1, 12)


def record(number, received_days_ago, status=CaseStatus.IN_PROGRESS, extension_days=0,
           paused_days=0, closed_days_after=None, with_deadline=True, case_type=CaseType.ACCESS,
           paused_days_ago=None):
    received_at = NOW - timedelta(days=received_days_ago)
    updated_at = received_at + timedelta(days=closed_days_after) if closed_days_after is not None else NOW
    deadline = None
    if with_deadline:
        deadline = DeadlineState(
            received_at=received_at,
            base_sla_days=30,
            extension_days=extension_days,
            total_paused_days=paused_days,
            paused_at=NOW - timedelta(days=paused_days_ago) if paused_days_ago is not None else None,
        )
    return CaseRecord(
        case_id=f"id-{number}",
        case_number=f"DSAR-2026-00000{number}",
        case_type=case_type,
        priority=CasePriority.MEDIUM,
        status=status,
        received_at=received_at,
        updated_at=updated_at,
        deadline=deadline,
    )


@pytest.fixture
def policy():
    return SlaPolicy(due_soon_threshold_days=7)


@pytest.fixture
def four_open_cases():
    return [
        record(1, 40),   # due 10 days ago
        record(2, 27),   # due in 3 days
        record(3, 23),   # due in exactly 7 days
        record(4, 10),   # due in 20 days
    ]


class TestSummary:

    def test_overdue_and_due_soon_counts(self, four_open_cases, policy):
        summary = build_summary(four_open_cases, NOW, policy)
        assert summary.total_cases == 4
        assert summary.total_open == 4
        assert summary.overdue == 1
        assert summary.due_in_7 == 2
        assert summary.due_in_14 == 2
        assert summary.due_in_30 == 3
        assert summary.risk_distribution.red == 1
        assert summary.risk_distribution.yellow == 2
        assert summary.risk_distribution.green == 1
        assert summary.generated_at == NOW

    def test_terminal_cases_not_open(self, four_open_cases, policy):
        records = four_open_cases + [
            record(5, 60, status=CaseStatus.CLOSED, closed_days_after=20),
            record(6, 50, status=CaseStatus.REJECTED, closed_days_after=2),
        ]
        summary = build_summary(records, NOW, policy)
        assert summary.total_cases == 6
        assert summary.total_open == 4
        # the closed case is long past its due date but is not overdue
        assert summary.overdue == 1
        assert summary.cases_by_status == {"IN_PROGRESS": 4, "CLOSED": 1, "REJECTED": 1}

    def test_average_days_to_close_rounds_half_up(self, policy):
        records = [
            record(1, 40, status=CaseStatus.CLOSED, closed_days_after=10),
            record(2, 40, status=CaseStatus.CLOSED, closed_days_after=15),
            # rejected cases do not count towards closure time
            record(3, 40, status=CaseStatus.REJECTED, closed_days_after=1),
        ]
        assert build_summary(records, NOW, policy).avg_days_to_close == 13

    def test_no_closed_cases(self, four_open_cases, policy):
        assert build_summary(four_open_cases, NOW, policy).avg_days_to_close == 0

    def test_extension_rate(self, policy):
        records = [record(1, 5, extension_days=14), record(2, 5), record(3, 5)]
        assert build_summary(records, NOW, policy).extension_rate == 33

    def test_empty_tenant(self, policy):
        summary = build_summary([], NOW, policy)
        assert summary.total_cases == 0
        assert summary.extension_rate == 0
        assert summary.avg_days_to_close == 0

    def test_missing_deadline_is_green(self, policy):
        summary = build_summary([record(1, 90, with_deadline=False)], NOW, policy)
        assert summary.overdue == 0
        assert summary.due_in_7 == 0
        assert summary.risk_distribution.green == 1

    def test_broken_deadline_does_not_abort(self, four_open_cases, policy):
        broken = record(9, 45, extension_days=-3)
        summary = build_summary(four_open_cases + [broken], NOW, policy)
        assert summary.total_open == 5
        assert summary.overdue == 1
        assert summary.risk_distribution.green == 2

    def test_pause_and_extension_respected(self, policy):
        # received 40 days ago, 14 day extension: due in 4 days
        summary = build_summary([record(1, 40, extension_days=14)], NOW, policy)
        assert summary.overdue == 0
        assert summary.due_in_7 == 1
        # a 10 day pause instead: due exactly now, which is not overdue yet
        summary = build_summary([record(2, 40, paused_days=10)], NOW, policy)
        assert summary.overdue == 0
        assert summary.due_in_7 == 1

    def test_paused_cases_counted(self, four_open_cases, policy):
        records = four_open_cases + [
            record(5, 12, status=CaseStatus.PENDING_CLARIFICATION, paused_days_ago=3),
            # a closed case never counts as paused
            record(6, 50, status=CaseStatus.REJECTED, closed_days_after=2, paused_days_ago=48),
        ]
        summary = build_summary(records, NOW, policy)
        assert summary.paused == 1
        assert build_summary(four_open_cases, NOW, policy).paused == 0

    def test_breakdowns(self, policy):
        records = [
            record(1, 5, case_type=CaseType.ERASURE),
            record(2, 5, case_type=CaseType.ERASURE),
            record(3, 5, case_type=CaseType.ACCESS),
        ]
        summary = build_summary(records, NOW, policy)
        assert summary.cases_by_type == {"ERASURE": 2, "ACCESS": 1}
        assert summary.cases_by_priority == {"MEDIUM": 3}

    def test_idempotent(self, four_open_cases, policy):
        assert build_summary(four_open_cases, NOW, policy) == build_summary(four_open_cases, NOW, policy)


class TestRows:

    def test_row_fields(self, policy):
        rows = build_rows([record(1, 25, extension_days=14, paused_days=2)], NOW, policy)
        row = rows[0]
        assert row.case_id == "DSAR-2026-000001"
        assert row.request_type == "ACCESS"
        assert row.status == "IN_PROGRESS"
        assert row.received_at == "2026-05-07"
        assert row.effective_due_at == "2026-06-22"
        assert row.closed_at == ""
        assert row.extension_used == "Yes"
        assert row.extension_days == 14
        assert row.paused_duration_days == 2
        assert row.paused == "No"
        assert row.days_remaining == 21
        assert row.current_risk == RiskLevel.GREEN.value
        assert row.age_days == 25

    def test_closed_row(self, policy):
        row = build_rows([record(1, 40, status=CaseStatus.CLOSED, closed_days_after=12)], NOW, policy)[0]
        assert row.closed_at == "2026-05-04"
        assert row.age_days == 12
        assert row.extension_used == "No"

    def test_paused_row(self, policy):
        row = build_rows([record(1, 12, status=CaseStatus.PENDING_CLARIFICATION, paused_days_ago=3)], NOW, policy)[0]
        assert row.paused == "Yes"
        # the frozen clock is not in total_paused_days until the case resumes
        assert row.paused_duration_days == 0
        assert "paused" in REPORT_COLUMNS

    def test_newest_first(self, four_open_cases, policy):
        rows = build_rows(four_open_cases, NOW, policy)
        assert [r.case_id for r in rows] == [
            "DSAR-2026-000004", "DSAR-2026-000003", "DSAR-2026-000002", "DSAR-2026-000001",
        ]

    def test_missing_deadline_row(self, policy):
        row = build_rows([record(1, 3, with_deadline=False)], NOW, policy)[0]
        assert row.effective_due_at == ""
        assert row.days_remaining is None
        assert row.current_risk == "GREEN"

    def test_rows_agree_with_summary(self, four_open_cases, policy):
        rows = build_rows(four_open_cases, NOW, policy)
        summary = build_summary(four_open_cases, NOW, policy)
        assert sum(1 for r in rows if r.current_risk == "RED") == summary.risk_distribution.red
        assert sum(1 for r in rows if 0 <= r.days_remaining <= 7) == summary.due_in_7


class TestCsv:

    def test_header_and_one_line_per_case(self, four_open_cases, policy):
        output = rows_to_csv(build_rows(four_open_cases, NOW, policy))
        lines = output.strip("\n").split("\n")
        assert len(lines) == 5
        assert lines[0] == ",".join(f'"{c}"' for c in REPORT_COLUMNS)

    def test_empty_values_quoted(self, policy):
        output = rows_to_csv(build_rows([record(1, 3, with_deadline=False)], NOW, policy))
        assert '""' in output.split("\n")[1]

    def test_empty_report_has_header(self):
        assert rows_to_csv([]).count("\n") == 1


class TestRounding:

    @pytest.mark.parametrize("value,expected", [(12.5, 13), (12.49, 12), (0.5, 1), (2.0, 2)])
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected
