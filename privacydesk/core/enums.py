# privacydesk/core/enums.py
import enum


class CaseType(str, enum.Enum):
    """Data subject request category"""
    ACCESS = "ACCESS"
    ERASURE = "ERASURE"
    RECTIFICATION = "RECTIFICATION"
    RESTRICTION = "RESTRICTION"
    PORTABILITY = "PORTABILITY"
    OBJECTION = "OBJECTION"


class CasePriority(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class CaseStatus(str, enum.Enum):
    NEW = "NEW"
    IDENTITY_VERIFICATION = "IDENTITY_VERIFICATION"
    INTAKE_TRIAGE = "INTAKE_TRIAGE"
    IN_PROGRESS = "IN_PROGRESS"
    PENDING_CLARIFICATION = "PENDING_CLARIFICATION"
    READY_TO_CLOSE = "READY_TO_CLOSE"
    CLOSED = "CLOSED"
    REJECTED = "REJECTED"


class RiskLevel(str, enum.Enum):
    GREEN = "GREEN"
    YELLOW = "YELLOW"
    RED = "RED"


class CalendarPolicy(str, enum.Enum):
    """How SLA day counts are turned into dates"""
    CALENDAR = "CALENDAR"
    BUSINESS_DAYS = "BUSINESS_DAYS"


class MilestoneType(str, enum.Enum):
    """Internal checkpoints planned at intake, in workflow order"""
    IDV_COMPLETE = "IDV_COMPLETE"
    COLLECTION_COMPLETE = "COLLECTION_COMPLETE"
    DRAFT_READY = "DRAFT_READY"
    LEGAL_REVIEW_DONE = "LEGAL_REVIEW_DONE"
    RESPONSE_SENT = "RESPONSE_SENT"


class DeadlineEventType(str, enum.Enum):
    CREATED = "CREATED"
    EXTENDED = "EXTENDED"
    PAUSED = "PAUSED"
    RESUMED = "RESUMED"
