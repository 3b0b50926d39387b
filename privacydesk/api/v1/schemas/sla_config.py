# privacydesk/api/v1/schemas/sla_config.py
from pydantic import BaseModel, Field
from typing import Optional
from datetime import date, datetime


class SlaConfigUpdate(BaseModel):
    """Partial update; omitted fields keep their current value"""
    initial_deadline_days: Optional[int] = Field(None, ge=1, le=365, description="Base SLA days for new cases")
    due_soon_threshold_days: Optional[int] = Field(None, ge=0, le=365)
    extension_max_days: Optional[int] = Field(None, ge=0, le=365, description="Cumulative extension cap")
    use_business_days: Optional[bool] = Field(None, description="Count SLA days as business days")
    milestone_idv_days: Optional[int] = Field(None, ge=0, le=365, description="Identity verification milestone")
    milestone_collection_days: Optional[int] = Field(None, ge=0, le=365, description="Data collection milestone")
    milestone_draft_days: Optional[int] = Field(None, ge=0, le=365, description="Draft response milestone")
    milestone_legal_days: Optional[int] = Field(None, ge=0, le=365, description="Legal review milestone")


class SlaConfigResponse(BaseModel):
    tenant_id: str
    initial_deadline_days: int
    due_soon_threshold_days: int
    extension_max_days: int
    use_business_days: bool
    milestone_idv_days: int
    milestone_collection_days: int
    milestone_draft_days: int
    milestone_legal_days: int
    is_default: bool = Field(False, description="True when the tenant has no stored config")


class HolidayCreate(BaseModel):
    date: date
    name: str = Field(..., min_length=1, max_length=200)
    locale: str = Field("DE", min_length=2, max_length=16)


class HolidayResponse(BaseModel):
    date: date
    name: str
    locale: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
