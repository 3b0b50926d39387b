# privacydesk/core/reporting.py
"""
Aggregation / reporting engine for tenant-wide SLA views.

Summary tiles, the per-case export rows and the dashboard all classify cases
with compute_deadline from the stored deadline inputs, for one caller-supplied
`now`. Nothing here trusts previously persisted derived fields, and nothing
here writes.

A running pause window is not folded into days remaining until it closes;
the `paused` count and row flag mark those cases so a frozen clock can be
shown as such.
"""
import csv
import io
import math
from collections import Counter
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from loguru import logger

from privacydesk.core.calendar import count_business_days
from privacydesk.core.deadline import DeadlineResult, DeadlineState, SlaPolicy, as_utc
from privacydesk.core.enums import CalendarPolicy, CasePriority, CaseStatus, CaseType, RiskLevel
from privacydesk.core.state_machine import TERMINAL_STATUSES
from privacydesk.exceptions.errors import InvalidArgumentError

DUE_WINDOWS = (7, 14, 30)
SECONDS_PER_DAY = 86400


@dataclass(frozen=True)
class CaseRecord:
    """A stored case with its deadline, as handed over by persistence"""
    case_id: str
    case_number: str
    case_type: CaseType
    priority: CasePriority
    status: CaseStatus
    received_at: datetime
    updated_at: datetime
    deadline: Optional[DeadlineState] = None

    @property
    def is_open(self) -> bool:
        return CaseStatus(self.status) not in TERMINAL_STATUSES


@dataclass
class RiskDistribution:
    green: int = 0
    yellow: int = 0
    red: int = 0


@dataclass
class SlaSummary:
    total_cases: int = 0
    total_open: int = 0
    overdue: int = 0
    paused: int = 0
    due_in_7: int = 0
    due_in_14: int = 0
    due_in_30: int = 0
    avg_days_to_close: int = 0
    extension_rate: int = 0
    risk_distribution: RiskDistribution = field(default_factory=RiskDistribution)
    cases_by_status: Dict[str, int] = field(default_factory=dict)
    cases_by_type: Dict[str, int] = field(default_factory=dict)
    cases_by_priority: Dict[str, int] = field(default_factory=dict)
    generated_at: Optional[datetime] = None


@dataclass(frozen=True)
class SlaReportRow:
    case_id: str
    request_type: str
    priority: str
    status: str
    received_at: str
    effective_due_at: str
    closed_at: str
    extension_used: str
    extension_days: int
    paused_duration_days: int
    paused: str
    current_risk: str
    days_remaining: Optional[int]
    age_days: int


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _evaluate(record: CaseRecord, now: datetime, policy: SlaPolicy) -> Optional[DeadlineResult]:
    """Per-case classification; a broken deadline row degrades to None"""
    if record.deadline is None:
        return None
    try:
        return record.deadline.evaluate(now, policy.due_soon_threshold_days)
    except InvalidArgumentError as e:
        logger.warning(f"Skipping deadline classification for case {record.case_number}: {e.detail}")
        return None


def classify_records(
        records: Iterable[CaseRecord], now: datetime, policy: SlaPolicy
) -> List[Tuple[CaseRecord, Optional[DeadlineResult]]]:
    """Pair every record with its recomputed deadline, once per scan"""
    return [(record, _evaluate(record, now, policy)) for record in records]


def build_summary(records: Iterable[CaseRecord], now: datetime, policy: SlaPolicy) -> SlaSummary:
    """Tenant-wide SLA summary for the given reference time"""
    now = as_utc(now)
    classified = classify_records(records, now, policy)
    summary = SlaSummary(total_cases=len(classified), generated_at=now)

    closed_durations: List[float] = []
    with_extension = 0
    status_counts: Counter = Counter()
    type_counts: Counter = Counter()
    priority_counts: Counter = Counter()

    for record, result in classified:
        status_counts[CaseStatus(record.status).value] += 1
        type_counts[CaseType(record.case_type).value] += 1
        priority_counts[CasePriority(record.priority).value] += 1

        if record.deadline is not None and record.deadline.extension_days > 0:
            with_extension += 1

        if CaseStatus(record.status) == CaseStatus.CLOSED:
            elapsed = as_utc(record.updated_at) - as_utc(record.received_at)
            closed_durations.append(elapsed.total_seconds() / SECONDS_PER_DAY)

        if not record.is_open:
            continue

        summary.total_open += 1
        if record.deadline is not None and record.deadline.is_paused:
            summary.paused += 1
        risk = result.current_risk if result else RiskLevel.GREEN
        setattr(summary.risk_distribution, risk.value.lower(),
                getattr(summary.risk_distribution, risk.value.lower()) + 1)

        if result is None:
            continue
        if result.effective_due_at < now:
            summary.overdue += 1
        for window in DUE_WINDOWS:
            if 0 <= result.days_remaining <= window:
                setattr(summary, f"due_in_{window}", getattr(summary, f"due_in_{window}") + 1)

    if closed_durations:
        summary.avg_days_to_close = round_half_up(sum(closed_durations) / len(closed_durations))
    if summary.total_cases:
        summary.extension_rate = round_half_up(100 * with_extension / summary.total_cases)

    summary.cases_by_status = dict(status_counts)
    summary.cases_by_type = dict(type_counts)
    summary.cases_by_priority = dict(priority_counts)
    return summary


def _iso_date(value: Optional[datetime]) -> str:
    return as_utc(value).date().isoformat() if value else ""


def _age_days(record: CaseRecord, now: datetime, policy: SlaPolicy) -> int:
    end = now if record.is_open else as_utc(record.updated_at)
    start = as_utc(record.received_at)
    if policy.calendar_policy == CalendarPolicy.BUSINESS_DAYS:
        return count_business_days(start, end, policy.holidays)
    return max(0, int((end - start).total_seconds() // SECONDS_PER_DAY))


def build_rows(records: Iterable[CaseRecord], now: datetime, policy: SlaPolicy) -> List[SlaReportRow]:
    """One export row per case, newest received first"""
    now = as_utc(now)
    rows = []
    ordered = sorted(classify_records(records, now, policy),
                     key=lambda pair: as_utc(pair[0].received_at), reverse=True)

    for record, result in ordered:
        deadline = record.deadline
        extension_days = deadline.extension_days if deadline else 0
        rows.append(SlaReportRow(
            case_id=record.case_number,
            request_type=CaseType(record.case_type).value,
            priority=CasePriority(record.priority).value,
            status=CaseStatus(record.status).value,
            received_at=_iso_date(record.received_at),
            effective_due_at=_iso_date(result.effective_due_at if result else None),
            closed_at="" if record.is_open else _iso_date(record.updated_at),
            extension_used="Yes" if extension_days > 0 else "No",
            extension_days=extension_days,
            paused_duration_days=deadline.total_paused_days if deadline else 0,
            paused="Yes" if deadline is not None and deadline.is_paused else "No",
            current_risk=(result.current_risk if result else RiskLevel.GREEN).value,
            days_remaining=result.days_remaining if result else None,
            age_days=_age_days(record, now, policy),
        ))
    return rows


REPORT_COLUMNS = [f.name for f in fields(SlaReportRow)]


def rows_to_csv(rows: Iterable[SlaReportRow]) -> str:
    """Render export rows as CSV with a header line and fully quoted cells"""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=REPORT_COLUMNS, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writeheader()
    for row in rows:
        writer.writerow({k: ("" if v is None else v) for k, v in asdict(row).items()})
    return buffer.getvalue()
