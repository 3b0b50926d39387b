"""
Database models package
Imports all models for easy access
"""

# Import base classes and mixins
from privacydesk.db.models.base import Base, TimestampMixin, UUIDMixin

# Import all enums
from privacydesk.core.enums import (
    CaseType, CasePriority, CaseStatus, RiskLevel, CalendarPolicy, MilestoneType, DeadlineEventType
)

# Import case models
from privacydesk.db.models.case import Case
from privacydesk.db.models.deadline import CaseDeadline, CaseMilestone, DeadlineEvent
from privacydesk.db.models.transition import StateTransition

# Import configuration models
from privacydesk.db.models.sla_config import TenantSlaConfig, Holiday

# Export all models and enums
__all__ = [
    # Base classes
    'Base', 'TimestampMixin', 'UUIDMixin',

    # Enums
    'CaseType', 'CasePriority', 'CaseStatus', 'RiskLevel', 'CalendarPolicy',
    'MilestoneType', 'DeadlineEventType',

    # Case models
    'Case', 'CaseDeadline', 'CaseMilestone', 'DeadlineEvent', 'StateTransition',

    # Configuration models
    'TenantSlaConfig', 'Holiday',
]
