# privacydesk/db/crud/case.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm.exc import StaleDataError
from typing import Optional, List, Tuple
from uuid import UUID
from datetime import datetime
from loguru import logger

from privacydesk.db.models import Case, CaseDeadline, CaseMilestone, DeadlineEvent, StateTransition
from privacydesk.core.enums import CaseStatus, CaseType, CasePriority
from privacydesk.core.case_utils import CaseNumberGenerator
from privacydesk.core.deadline import SlaPolicy, as_utc
from privacydesk.core.lifecycle import CaseLifecycleEngine, CaseSnapshot, DeadlineEventRecord, LifecycleResult
from privacydesk.core.reporting import CaseRecord
from privacydesk.exceptions.errors import (
    ConcurrentModificationError, InvalidArgumentError, NotFoundError, PrivacyDeskError,
)
from privacydesk.utils.helpers import utc_now


async def generate_unique_case_number(db: AsyncSession, tenant_id: str, timestamp: datetime) -> str:
    """Generate a case number not yet used by the tenant"""
    max_attempts = 10

    for _ in range(max_attempts):
        case_number = CaseNumberGenerator.generate_case_number(timestamp)

        existing = await db.execute(
            select(Case.id).filter(Case.tenant_id == tenant_id, Case.case_number == case_number)
        )
        if existing.scalars().first() is None:
            return case_number

    raise InvalidArgumentError("Unable to generate unique case number")


def to_snapshot(case: Case) -> CaseSnapshot:
    """Engine view of a loaded case"""
    return CaseSnapshot(
        case_id=str(case.uuid),
        case_number=case.case_number,
        status=CaseStatus(case.status),
        version=case.version,
        deadline=case.deadline.to_state() if case.deadline else None,
    )


def to_record(case: Case) -> CaseRecord:
    """Reporting view of a loaded case"""
    return CaseRecord(
        case_id=str(case.uuid),
        case_number=case.case_number,
        case_type=case.type,
        priority=case.priority,
        status=case.status,
        received_at=case.received_at,
        updated_at=case.updated_at,
        deadline=case.deadline.to_state() if case.deadline else None,
    )


async def get_case_by_uuid(db: AsyncSession, tenant_id: str, case_uuid: UUID) -> Case:
    """Tenant-scoped case lookup; the deadline is loaded with it"""
    result = await db.execute(
        select(Case).filter(Case.tenant_id == tenant_id, Case.uuid == case_uuid)
    )
    case = result.scalars().first()
    if case is None:
        raise NotFoundError(f"Case {case_uuid} not found")
    return case


async def get_case_by_number(db: AsyncSession, tenant_id: str, case_number: str) -> Case:
    """Get case by case number"""
    result = await db.execute(
        select(Case).filter(Case.tenant_id == tenant_id, Case.case_number == case_number)
    )
    case = result.scalars().first()
    if case is None:
        raise NotFoundError(f"Case {case_number} not found")
    return case


def tenant_cases_query(tenant_id: str, status_filter: Optional[CaseStatus] = None):
    """Base select for a tenant's cases, newest received first"""
    query = select(Case).filter(Case.tenant_id == tenant_id)
    if status_filter:
        query = query.filter(Case.status == status_filter)
    return query.order_by(Case.received_at.desc(), Case.id.desc())


async def list_tenant_case_records(db: AsyncSession, tenant_id: str) -> List[CaseRecord]:
    """Every case of the tenant with its deadline inputs, for reporting"""
    result = await db.execute(tenant_cases_query(tenant_id))
    return [to_record(case) for case in result.scalars().all()]


async def list_transitions(db: AsyncSession, case: Case) -> List[StateTransition]:
    """Transition ledger of a case in the order the changes happened"""
    result = await db.execute(
        select(StateTransition)
        .filter(StateTransition.case_id == case.id)
        .order_by(StateTransition.changed_at.asc(), StateTransition.id.asc())
    )
    return list(result.scalars().all())


async def list_deadline_events(db: AsyncSession, case: Case, limit: Optional[int] = None) -> List[DeadlineEvent]:
    """Deadline history of a case, newest first"""
    query = (
        select(DeadlineEvent)
        .filter(DeadlineEvent.case_id == case.id)
        .order_by(DeadlineEvent.occurred_at.desc(), DeadlineEvent.id.desc())
    )
    if limit:
        query = query.limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


async def list_milestones(db: AsyncSession, case: Case) -> List[CaseMilestone]:
    result = await db.execute(
        select(CaseMilestone)
        .filter(CaseMilestone.case_id == case.id)
        .order_by(CaseMilestone.planned_due_at.asc(), CaseMilestone.id.asc())
    )
    return list(result.scalars().all())


def _deadline_event_row(case: Case, record: DeadlineEventRecord) -> DeadlineEvent:
    return DeadlineEvent(
        tenant_id=case.tenant_id,
        case_id=case.id,
        event_type=record.event_type,
        description=record.description,
        changed_by=record.changed_by,
        details=record.details,
        occurred_at=record.occurred_at,
    )


async def create_case(
        db: AsyncSession,
        tenant_id: str,
        case_type: CaseType,
        priority: CasePriority,
        actor_id: str,
        policy: SlaPolicy,
        description: Optional[str] = None,
        received_at: Optional[datetime] = None,
        now: Optional[datetime] = None
) -> Case:
    """Create a case in NEW status with its initial deadline, milestones and history entry"""
    now = as_utc(now or utc_now())
    received_at = as_utc(received_at) if received_at else now
    if received_at > now:
        raise InvalidArgumentError("received_at cannot be in the future")

    try:
        case_number = await generate_unique_case_number(db, tenant_id, received_at)
        engine = CaseLifecycleEngine(policy)
        deadline_state = engine.initial_deadline(received_at, now)

        case = Case(
            tenant_id=tenant_id,
            case_number=case_number,
            type=case_type,
            priority=priority,
            status=CaseStatus.NEW,
            description=description,
            received_at=received_at,
            version=1,
            created_at=now,
            updated_at=now,
        )
        deadline = CaseDeadline(tenant_id=tenant_id)
        deadline.apply_state(deadline_state)
        case.deadline = deadline

        db.add(case)
        await db.flush()

        for milestone in engine.initial_milestones(deadline_state):
            db.add(CaseMilestone(
                tenant_id=tenant_id,
                case_id=case.id,
                milestone_type=milestone.milestone_type,
                planned_due_at=milestone.planned_due_at,
            ))
        db.add(_deadline_event_row(case, engine.initialized_event(deadline_state, actor_id, now)))

        await db.commit()

        logger.info(f"Case created: {case.case_number} for tenant {tenant_id} by {actor_id}")
        return case

    except PrivacyDeskError:
        await db.rollback()
        raise
    except Exception as e:
        logger.error(f"Failed to create case: {e}")
        await db.rollback()
        raise


def _check_version(case: Case, expected_version: Optional[int]) -> None:
    if expected_version is not None and expected_version != case.version:
        raise ConcurrentModificationError(
            f"Case {case.case_number} is at version {case.version}, not {expected_version}"
        )


async def _apply_result(db: AsyncSession, case: Case, result: LifecycleResult) -> Case:
    """
    Persist a lifecycle mutation in one transaction.

    The case row is always updated with a bumped version, so a writer that
    committed in between makes the UPDATE match zero rows.
    """
    if case.version != result.expected_version:
        raise ConcurrentModificationError()

    case_number = case.case_number
    try:
        case.status = result.status
        case.updated_at = result.event.occurred_at
        case.version = result.expected_version + 1
        case.deadline.apply_state(result.deadline)

        if result.transition is not None:
            db.add(StateTransition(
                tenant_id=case.tenant_id,
                case_id=case.id,
                from_status=result.transition.from_status,
                to_status=result.transition.to_status,
                changed_by=result.transition.changed_by,
                reason=result.transition.reason,
                changed_at=result.transition.changed_at,
            ))
        for record in result.deadline_events:
            db.add(_deadline_event_row(case, record))

        await db.commit()
        return case

    except StaleDataError:
        await db.rollback()
        logger.warning(f"Concurrent modification detected on case {case_number}")
        raise ConcurrentModificationError()
    except Exception as e:
        logger.error(f"Failed to apply {result.event.event_type} to case {case_number}: {e}")
        await db.rollback()
        raise


async def apply_transition(
        db: AsyncSession,
        case: Case,
        to_status: CaseStatus,
        actor_id: str,
        reason: Optional[str],
        policy: SlaPolicy,
        now: Optional[datetime] = None,
        expected_version: Optional[int] = None
) -> Tuple[Case, LifecycleResult]:
    """Validate and persist a status change, its deadline effect and ledger entry"""
    _check_version(case, expected_version)
    result = CaseLifecycleEngine(policy).transition(
        to_snapshot(case), to_status, actor_id, reason, now or utc_now()
    )
    case = await _apply_result(db, case, result)

    logger.info(
        f"Case {case.case_number} moved {result.event.from_status.value} -> "
        f"{result.event.to_status.value} by {actor_id}"
    )
    return case, result


async def apply_extension(
        db: AsyncSession,
        case: Case,
        extension_days: int,
        actor_id: str,
        reason: Optional[str],
        policy: SlaPolicy,
        now: Optional[datetime] = None,
        expected_version: Optional[int] = None
) -> Tuple[Case, LifecycleResult]:
    """Validate and persist a deadline extension"""
    _check_version(case, expected_version)
    result = CaseLifecycleEngine(policy).extend(
        to_snapshot(case), extension_days, actor_id, reason, now or utc_now()
    )
    case = await _apply_result(db, case, result)

    logger.info(f"Case {case.case_number} deadline extended by {extension_days} days by {actor_id}")
    return case, result
