# privacydesk/api/v1/schemas/cases.py
from pydantic import BaseModel, Field, UUID4, field_validator
from typing import Any, Dict, Optional, List
from datetime import date, datetime

from privacydesk.core.enums import (
    CaseType, CasePriority, CaseStatus, RiskLevel, CalendarPolicy, DeadlineEventType, MilestoneType,
)
from privacydesk.core.deadline import as_utc, calculate_days_remaining
from privacydesk.core.state_machine import STATUS_LABELS


class CaseBase(BaseModel):
    """Base schema for case"""
    type: CaseType = Field(..., description="Data subject request type")
    priority: CasePriority = Field(CasePriority.MEDIUM, description="Case priority")
    description: Optional[str] = Field(None, max_length=5000, description="Case description")


class CaseCreate(CaseBase):
    """Schema for creating a case"""
    received_at: Optional[datetime] = Field(
        None, description="When the request reached the controller (defaults to now)"
    )


class DeadlineResponse(BaseModel):
    """Deadline inputs plus the derived fields recomputed for `computed_at`"""
    received_at: datetime
    base_sla_days: int = Field(..., description="SLA days snapshotted at intake")
    calendar_policy: CalendarPolicy
    base_due_at: datetime
    effective_due_at: datetime = Field(..., description="Base due date plus extension and paused days")
    extension_days: int
    extension_reason: Optional[str] = None
    extension_applied_at: Optional[datetime] = None
    total_paused_days: int
    is_paused: bool
    paused_at: Optional[datetime] = None
    pause_reason: Optional[str] = None
    holidays: List[date] = Field(default_factory=list, description="Holidays counted by this deadline, fixed at intake")
    days_remaining: int = Field(..., description="Whole days until due; negative when overdue")
    current_risk: RiskLevel
    computed_at: datetime

    @classmethod
    def from_state(cls, state, result=None, now: Optional[datetime] = None):
        """Build from a DeadlineState, overriding derived fields with a fresh DeadlineResult"""
        return cls(
            received_at=state.received_at,
            base_sla_days=state.base_sla_days,
            calendar_policy=state.calendar_policy,
            base_due_at=result.base_due_at if result else state.base_due_at,
            effective_due_at=result.effective_due_at if result else state.effective_due_at,
            extension_days=state.extension_days,
            extension_reason=state.extension_reason,
            extension_applied_at=state.extension_applied_at,
            total_paused_days=state.total_paused_days,
            is_paused=state.is_paused,
            paused_at=state.paused_at,
            pause_reason=state.pause_reason,
            holidays=sorted(state.holidays),
            days_remaining=result.days_remaining if result else state.days_remaining,
            current_risk=result.current_risk if result else state.current_risk,
            computed_at=now if result and now else state.computed_at,
        )


class CaseResponse(CaseBase):
    """Schema for case response with UUID"""
    id: UUID4 = Field(..., description="Case UUID")
    case_number: str = Field(..., description="Unique case number")
    status: CaseStatus = Field(..., description="Case status")
    received_at: datetime
    version: int = Field(..., description="Optimistic concurrency version")
    created_at: datetime
    updated_at: datetime
    deadline: Optional[DeadlineResponse] = None

    @classmethod
    def from_model(cls, case, deadline: Optional[DeadlineResponse] = None):
        """Convert Case model to API response using UUID"""
        return cls(
            id=case.uuid,
            case_number=case.case_number,
            type=case.type,
            priority=case.priority,
            description=case.description,
            status=case.status,
            received_at=as_utc(case.received_at),
            version=case.version,
            created_at=as_utc(case.created_at),
            updated_at=as_utc(case.updated_at),
            deadline=deadline,
        )

    class Config:
        from_attributes = True


class CaseSummary(BaseModel):
    """Lightweight case summary for lists"""
    id: UUID4
    case_number: str
    type: CaseType
    priority: CasePriority
    status: CaseStatus
    received_at: datetime
    effective_due_at: Optional[datetime] = None
    days_remaining: Optional[int] = None
    current_risk: RiskLevel = RiskLevel.GREEN

    @classmethod
    def from_model(cls, case, result=None):
        """Convert Case model to summary; result is the recomputed DeadlineResult"""
        return cls(
            id=case.uuid,
            case_number=case.case_number,
            type=case.type,
            priority=case.priority,
            status=case.status,
            received_at=as_utc(case.received_at),
            effective_due_at=result.effective_due_at if result else None,
            days_remaining=result.days_remaining if result else None,
            current_risk=result.current_risk if result else RiskLevel.GREEN,
        )

    class Config:
        from_attributes = True


class TransitionRequest(BaseModel):
    """Schema for a status change"""
    to_status: CaseStatus = Field(..., description="Target status")
    reason: Optional[str] = Field(None, max_length=2000, description="Why the status changed")
    expected_version: Optional[int] = Field(
        None, ge=1, description="Case version the caller last read; rejected with 409 on mismatch"
    )


class ExtensionRequest(BaseModel):
    """Schema for a statutory deadline extension"""
    extension_days: int = Field(..., description="Days to add on top of any existing extension")
    reason: Optional[str] = Field(None, max_length=2000, description="Justification for the extension")
    expected_version: Optional[int] = Field(None, ge=1)


class TransitionRecordResponse(BaseModel):
    """Ledger entry; built from the ORM row or the engine record alike"""
    from_status: CaseStatus
    to_status: CaseStatus
    changed_by: str
    reason: Optional[str] = None
    changed_at: datetime

    @field_validator("changed_at")
    @classmethod
    def pin_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    class Config:
        from_attributes = True


class CaseEventResponse(BaseModel):
    """Change event for downstream audit and webhook consumers"""
    event_type: str
    case_id: str
    case_number: str
    from_status: CaseStatus
    to_status: CaseStatus
    changed_by: str
    reason: Optional[str] = None
    occurred_at: datetime
    paused_days_added: int = 0
    extension_days_added: int = 0

    class Config:
        from_attributes = True


class TransitionResponse(BaseModel):
    case: CaseResponse
    transition: TransitionRecordResponse
    event: CaseEventResponse


class ExtensionResponse(BaseModel):
    case: CaseResponse
    event: CaseEventResponse


class AllowedTransition(BaseModel):
    status: CaseStatus
    label: str

    @classmethod
    def from_status(cls, status: CaseStatus):
        return cls(status=status, label=STATUS_LABELS.get(status, status.value))


class AllowedTransitionsResponse(BaseModel):
    current_status: CaseStatus
    is_terminal: bool
    is_paused: bool
    allowed: List[AllowedTransition]


class MilestoneResponse(BaseModel):
    milestone_type: MilestoneType
    planned_due_at: datetime
    days_remaining: int = Field(..., description="Whole days until the milestone; negative when missed")

    @classmethod
    def from_model(cls, milestone, now: datetime):
        planned_due_at = as_utc(milestone.planned_due_at)
        return cls(
            milestone_type=milestone.milestone_type,
            planned_due_at=planned_due_at,
            days_remaining=calculate_days_remaining(planned_due_at, now),
        )


class DeadlineEventResponse(BaseModel):
    """Deadline history entry"""
    event_type: DeadlineEventType
    description: str
    changed_by: str
    details: Dict[str, Any] = Field(default_factory=dict)
    occurred_at: datetime

    @field_validator("occurred_at")
    @classmethod
    def pin_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    class Config:
        from_attributes = True


class CaseDeadlineDetailResponse(DeadlineResponse):
    """Deadline with its planned milestones and history, newest event first"""
    milestones: List[MilestoneResponse] = Field(default_factory=list)
    events: List[DeadlineEventResponse] = Field(default_factory=list)
