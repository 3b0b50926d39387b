# privacydesk/api/v1/endpoints/sla_config.py
"""Tenant SLA configuration and holiday calendar"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from datetime import date

from privacydesk.db.database import get_db
from privacydesk.db import crud
from privacydesk.api.v1.schemas.sla_config import (
    SlaConfigUpdate, SlaConfigResponse, HolidayCreate, HolidayResponse,
)
from privacydesk.auth.dependencies import get_tenant_id, get_actor_id

router = APIRouter()


@router.get("/sla-config", response_model=SlaConfigResponse)
async def get_sla_config(
    db: AsyncSession = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    """Effective SLA configuration (service defaults when none is stored)"""
    config = await crud.sla_config.get_sla_config(db, tenant_id)
    values = await crud.sla_config.get_sla_values(db, tenant_id)
    return SlaConfigResponse(tenant_id=tenant_id, is_default=config is None, **values)


@router.put("/sla-config", response_model=SlaConfigResponse)
async def update_sla_config(
    updates: SlaConfigUpdate,
    db: AsyncSession = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    actor_id: str = Depends(get_actor_id)
):
    """Update the SLA configuration; existing case deadlines are not moved"""
    await crud.sla_config.upsert_sla_config(db, tenant_id, updates.model_dump(exclude_unset=True))
    values = await crud.sla_config.get_sla_values(db, tenant_id)
    return SlaConfigResponse(tenant_id=tenant_id, is_default=False, **values)


@router.get("/holidays", response_model=List[HolidayResponse])
async def list_holidays(
    year: Optional[int] = Query(None, ge=1900, le=2200, description="Only holidays in this year"),
    db: AsyncSession = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    holidays = await crud.sla_config.list_holidays(db, tenant_id, year)
    return [HolidayResponse.model_validate(h) for h in holidays]


@router.post("/holidays", response_model=HolidayResponse, status_code=status.HTTP_201_CREATED)
async def add_holiday(
    holiday: HolidayCreate,
    db: AsyncSession = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    actor_id: str = Depends(get_actor_id)
):
    """Add a non-working day used by business-day deadlines"""
    created = await crud.sla_config.add_holiday(db, tenant_id, holiday.date, holiday.name, holiday.locale)
    return HolidayResponse.model_validate(created)


@router.delete("/holidays/{day}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_holiday(
    day: date,
    db: AsyncSession = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    actor_id: str = Depends(get_actor_id)
):
    await crud.sla_config.delete_holiday(db, tenant_id, day)
