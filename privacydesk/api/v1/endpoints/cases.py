# privacydesk/api/v1/endpoints/cases.py
"""Case lifecycle and deadline endpoints"""
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from datetime import datetime
from uuid import UUID
from loguru import logger

from privacydesk.db.database import get_db
from privacydesk.db import crud
from privacydesk.db.models import Case, CaseStatus
from privacydesk.api.v1.schemas.cases import (
    CaseCreate, CaseResponse, CaseSummary, DeadlineResponse, TransitionRequest, TransitionResponse,
    TransitionRecordResponse, ExtensionRequest, ExtensionResponse, CaseEventResponse,
    AllowedTransition, AllowedTransitionsResponse, CaseDeadlineDetailResponse, DeadlineEventResponse,
    MilestoneResponse,
)
from privacydesk.auth.dependencies import get_tenant_id, get_actor_id
from privacydesk.core import tracing
from privacydesk.core.deadline import SlaPolicy, as_utc
from privacydesk.core.lifecycle import CaseEvent, CaseLifecycleEngine
from privacydesk.core.pagination import AutoPaginator, PaginationParams, PaginatedResponse, get_pagination
from privacydesk.core.state_machine import case_state_machine
from privacydesk.exceptions.errors import PrivacyDeskError
from privacydesk.utils.helpers import utc_now

router = APIRouter()

DEADLINE_EVENT_LIMIT = 50


def deadline_view(case: Case, policy: SlaPolicy, now: datetime) -> Optional[DeadlineResponse]:
    """Deadline recomputed for `now` from its stored inputs"""
    if case.deadline is None:
        return None
    snapshot = crud.case.to_snapshot(case)
    result = CaseLifecycleEngine(policy).evaluate(snapshot, now)
    return DeadlineResponse.from_state(snapshot.deadline, result, now)


def case_view(case: Case, policy: SlaPolicy, now: datetime) -> CaseResponse:
    return CaseResponse.from_model(case, deadline=deadline_view(case, policy, now))


def emit_event(event: CaseEvent) -> None:
    """Hand the change event to the log pipeline for audit and webhook consumers"""
    tracing.info(
        f"📣 {event.event_type} {event.case_number}",
        event_type=event.event_type,
        case_id=event.case_id,
        case_number=event.case_number,
        from_status=event.from_status.value,
        to_status=event.to_status.value,
        changed_by=event.changed_by,
        occurred_at=event.occurred_at.isoformat(),
        paused_days_added=event.paused_days_added,
        extension_days_added=event.extension_days_added,
    )


@router.post("", response_model=CaseResponse, status_code=status.HTTP_201_CREATED)
async def create_case(
    case_data: CaseCreate,
    db: AsyncSession = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    actor_id: str = Depends(get_actor_id)
):
    """Register a new data subject request; its deadline starts at received_at"""
    try:
        now = utc_now()
        policy = await crud.sla_config.load_sla_policy(db, tenant_id)
        case = await crud.case.create_case(
            db=db,
            tenant_id=tenant_id,
            case_type=case_data.type,
            priority=case_data.priority,
            actor_id=actor_id,
            policy=policy,
            description=case_data.description,
            received_at=case_data.received_at,
            now=now
        )
        return case_view(case, policy, now)

    except PrivacyDeskError:
        raise
    except Exception as e:
        logger.error(f"Failed to create case: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create case"
        )


@router.get("", response_model=PaginatedResponse[CaseSummary])
async def list_cases(
    request: Request,
    pagination: PaginationParams = Depends(get_pagination),
    status_filter: Optional[CaseStatus] = Query(None, description="Filter by case status"),
    db: AsyncSession = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    """List the tenant's cases, newest received first"""
    now = utc_now()
    policy = await crud.sla_config.load_sla_policy(db, tenant_id)

    def summarize(case: Case) -> CaseSummary:
        result = None
        if case.deadline is not None:
            result = CaseLifecycleEngine(policy).evaluate(crud.case.to_snapshot(case), now)
        return CaseSummary.from_model(case, result)

    return await AutoPaginator.paginate(
        db,
        crud.case.tenant_cases_query(tenant_id, status_filter),
        pagination,
        converter=summarize,
        request=request
    )


@router.get("/number/{case_number}", response_model=CaseResponse)
async def get_case_by_number(
    case_number: str,
    db: AsyncSession = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    """Get a case by its human-readable number"""
    case = await crud.case.get_case_by_number(db, tenant_id, case_number.upper())
    policy = await crud.sla_config.load_sla_policy(db, tenant_id)
    return case_view(case, policy, utc_now())


@router.get("/{case_id}", response_model=CaseResponse)
async def get_case(
    case_id: UUID,
    db: AsyncSession = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    """Get a specific case by UUID"""
    case = await crud.case.get_case_by_uuid(db, tenant_id, case_id)
    policy = await crud.sla_config.load_sla_policy(db, tenant_id)
    return case_view(case, policy, utc_now())


@router.post("/{case_id}/transitions", response_model=TransitionResponse)
async def transition_case(
    case_id: UUID,
    transition: TransitionRequest,
    db: AsyncSession = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    actor_id: str = Depends(get_actor_id)
):
    """Move a case to a new status; pauses or resumes the deadline clock as needed"""
    case = await crud.case.get_case_by_uuid(db, tenant_id, case_id)
    policy = await crud.sla_config.load_sla_policy(db, tenant_id)
    now = utc_now()

    case, result = await crud.case.apply_transition(
        db, case,
        to_status=transition.to_status,
        actor_id=actor_id,
        reason=transition.reason,
        policy=policy,
        now=now,
        expected_version=transition.expected_version
    )
    emit_event(result.event)

    return TransitionResponse(
        case=case_view(case, policy, now),
        transition=TransitionRecordResponse.model_validate(result.transition),
        event=CaseEventResponse.model_validate(result.event),
    )


@router.get("/{case_id}/transitions", response_model=List[TransitionRecordResponse])
async def list_case_transitions(
    case_id: UUID,
    db: AsyncSession = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    """Status history of a case, oldest first"""
    case = await crud.case.get_case_by_uuid(db, tenant_id, case_id)
    transitions = await crud.case.list_transitions(db, case)
    return [TransitionRecordResponse.model_validate(t) for t in transitions]


@router.get("/{case_id}/allowed-transitions", response_model=AllowedTransitionsResponse)
async def get_allowed_transitions(
    case_id: UUID,
    db: AsyncSession = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    """Statuses the case may move to next"""
    case = await crud.case.get_case_by_uuid(db, tenant_id, case_id)
    current = CaseStatus(case.status)
    return AllowedTransitionsResponse(
        current_status=current,
        is_terminal=case_state_machine.is_terminal(current),
        is_paused=bool(case.deadline and case.deadline.paused_at is not None),
        allowed=[AllowedTransition.from_status(s) for s in case_state_machine.get_allowed_transitions(current)],
    )


@router.get("/{case_id}/deadline", response_model=CaseDeadlineDetailResponse)
async def get_case_deadline(
    case_id: UUID,
    now: Optional[datetime] = Query(None, description="Reference time (defaults to server time)"),
    db: AsyncSession = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    """Deadline recomputed for `now`, with its milestones and the latest history entries"""
    case = await crud.case.get_case_by_uuid(db, tenant_id, case_id)
    policy = await crud.sla_config.load_sla_policy(db, tenant_id)
    reference = as_utc(now) if now else utc_now()

    snapshot = crud.case.to_snapshot(case)
    result = CaseLifecycleEngine(policy).evaluate(snapshot, reference)
    deadline = DeadlineResponse.from_state(snapshot.deadline, result, reference)
    milestones = await crud.case.list_milestones(db, case)
    events = await crud.case.list_deadline_events(db, case, limit=DEADLINE_EVENT_LIMIT)

    return CaseDeadlineDetailResponse(
        **deadline.model_dump(),
        milestones=[MilestoneResponse.from_model(m, reference) for m in milestones],
        events=[DeadlineEventResponse.model_validate(e) for e in events],
    )


@router.post("/{case_id}/deadline/extend", response_model=ExtensionResponse)
async def extend_case_deadline(
    case_id: UUID,
    extension: ExtensionRequest,
    db: AsyncSession = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    actor_id: str = Depends(get_actor_id)
):
    """Apply a statutory extension (cumulative, capped by the tenant's maximum)"""
    case = await crud.case.get_case_by_uuid(db, tenant_id, case_id)
    policy = await crud.sla_config.load_sla_policy(db, tenant_id)
    now = utc_now()

    case, result = await crud.case.apply_extension(
        db, case,
        extension_days=extension.extension_days,
        actor_id=actor_id,
        reason=extension.reason,
        policy=policy,
        now=now,
        expected_version=extension.expected_version
    )
    emit_event(result.event)

    return ExtensionResponse(
        case=case_view(case, policy, now),
        event=CaseEventResponse.model_validate(result.event),
    )
