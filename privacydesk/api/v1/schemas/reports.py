# privacydesk/api/v1/schemas/reports.py
from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import datetime
from dataclasses import asdict


class RiskDistributionResponse(BaseModel):
    green: int = 0
    yellow: int = 0
    red: int = 0


class SlaSummaryResponse(BaseModel):
    """Tenant-wide SLA dashboard tiles"""
    total_cases: int
    total_open: int = Field(..., description="Cases not CLOSED or REJECTED")
    overdue: int = Field(..., description="Open cases past their effective due date")
    paused: int = Field(0, description="Open cases whose deadline clock is currently paused")
    due_in_7: int
    due_in_14: int
    due_in_30: int
    avg_days_to_close: int = Field(..., description="Mean days from receipt to close, rounded half-up")
    extension_rate: int = Field(..., description="Percentage of cases with an extension")
    risk_distribution: RiskDistributionResponse
    cases_by_status: Dict[str, int] = Field(default_factory=dict)
    cases_by_type: Dict[str, int] = Field(default_factory=dict)
    cases_by_priority: Dict[str, int] = Field(default_factory=dict)
    generated_at: datetime

    @classmethod
    def from_summary(cls, summary):
        return cls(**asdict(summary))


class SlaReportRowResponse(BaseModel):
    case_id: str = Field(..., description="Case number")
    request_type: str
    priority: str
    status: str
    received_at: str
    effective_due_at: str
    closed_at: str
    extension_used: str
    extension_days: int
    paused_duration_days: int
    paused: str = Field("No", description="Yes while the deadline clock is paused")
    current_risk: str
    days_remaining: Optional[int] = None
    age_days: int

    class Config:
        from_attributes = True


class SlaReportResponse(BaseModel):
    generated_at: datetime
    total: int
    rows: List[SlaReportRowResponse]
