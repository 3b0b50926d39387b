# privacydesk/db/crud/sla_config.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy.future import select
from typing import Optional, List, Dict, Any
from datetime import date
from loguru import logger

from privacydesk.core.config import settings
from privacydesk.core.deadline import SlaPolicy
from privacydesk.core.enums import CalendarPolicy
from privacydesk.db.models import TenantSlaConfig, Holiday
from privacydesk.exceptions.errors import InvalidArgumentError, NotFoundError

SLA_CONFIG_FIELDS = (
    "initial_deadline_days", "due_soon_threshold_days", "extension_max_days", "use_business_days",
    "milestone_idv_days", "milestone_collection_days", "milestone_draft_days", "milestone_legal_days",
)


def default_sla_values() -> Dict[str, Any]:
    """Service-wide defaults for tenants without a config row"""
    return {
        "initial_deadline_days": settings.DEFAULT_SLA_DAYS,
        "due_soon_threshold_days": settings.DEFAULT_DUE_SOON_DAYS,
        "extension_max_days": settings.DEFAULT_EXTENSION_MAX_DAYS,
        "use_business_days": settings.DEFAULT_USE_BUSINESS_DAYS,
        "milestone_idv_days": settings.DEFAULT_MILESTONE_IDV_DAYS,
        "milestone_collection_days": settings.DEFAULT_MILESTONE_COLLECTION_DAYS,
        "milestone_draft_days": settings.DEFAULT_MILESTONE_DRAFT_DAYS,
        "milestone_legal_days": settings.DEFAULT_MILESTONE_LEGAL_DAYS,
    }


def build_policy(values: Dict[str, Any], holidays=()) -> SlaPolicy:
    """SlaPolicy from stored config values; raises InvalidArgumentError on bad values"""
    return SlaPolicy(
        base_sla_days=values["initial_deadline_days"],
        due_soon_threshold_days=values["due_soon_threshold_days"],
        extension_max_days=values["extension_max_days"],
        calendar_policy=CalendarPolicy.BUSINESS_DAYS if values["use_business_days"] else CalendarPolicy.CALENDAR,
        holidays=holidays,
        milestone_idv_days=values["milestone_idv_days"],
        milestone_collection_days=values["milestone_collection_days"],
        milestone_draft_days=values["milestone_draft_days"],
        milestone_legal_days=values["milestone_legal_days"],
    )


async def get_sla_config(db: AsyncSession, tenant_id: str) -> Optional[TenantSlaConfig]:
    result = await db.execute(select(TenantSlaConfig).filter(TenantSlaConfig.tenant_id == tenant_id))
    return result.scalars().first()


async def get_sla_values(db: AsyncSession, tenant_id: str) -> Dict[str, Any]:
    """Effective config values; falls back to the service defaults"""
    config = await get_sla_config(db, tenant_id)
    if config is None:
        return default_sla_values()
    return {name: getattr(config, name) for name in SLA_CONFIG_FIELDS}


async def upsert_sla_config(db: AsyncSession, tenant_id: str, updates: Dict[str, Any]) -> TenantSlaConfig:
    """
    Create or update the tenant's SLA config.

    Only affects cases created afterwards: existing deadlines keep the SLA
    days, calendar policy, holidays and milestones they were created with.
    """
    unknown = set(updates) - set(SLA_CONFIG_FIELDS)
    if unknown:
        raise InvalidArgumentError(f"Unknown SLA config fields: {', '.join(sorted(unknown))}")

    config = await get_sla_config(db, tenant_id)
    values = await get_sla_values(db, tenant_id)
    values.update({k: v for k, v in updates.items() if v is not None})
    build_policy(values)

    try:
        if config is None:
            config = TenantSlaConfig(tenant_id=tenant_id, **values)
            db.add(config)
        else:
            for name, value in values.items():
                setattr(config, name, value)

        await db.commit()
        logger.info(f"SLA config updated for tenant {tenant_id}: {values}")
        return config

    except Exception as e:
        logger.error(f"Failed to update SLA config for tenant {tenant_id}: {e}")
        await db.rollback()
        raise


async def list_holidays(db: AsyncSession, tenant_id: str, year: Optional[int] = None) -> List[Holiday]:
    query = select(Holiday).filter(Holiday.tenant_id == tenant_id)
    if year is not None:
        query = query.filter(Holiday.date >= date(year, 1, 1), Holiday.date <= date(year, 12, 31))
    result = await db.execute(query.order_by(Holiday.date.asc()))
    return list(result.scalars().all())


async def add_holiday(
        db: AsyncSession,
        tenant_id: str,
        day: date,
        name: str,
        locale: str = "DE"
) -> Holiday:
    """Add a tenant holiday; one per date"""
    existing = await db.execute(
        select(Holiday.id).filter(Holiday.tenant_id == tenant_id, Holiday.date == day)
    )
    if existing.scalars().first() is not None:
        raise InvalidArgumentError(f"A holiday on {day.isoformat()} already exists")

    try:
        holiday = Holiday(tenant_id=tenant_id, date=day, name=name, locale=locale)
        db.add(holiday)
        await db.commit()
        logger.info(f"Holiday {day.isoformat()} ({name}) added for tenant {tenant_id}")
        return holiday

    except IntegrityError:
        await db.rollback()
        raise InvalidArgumentError(f"A holiday on {day.isoformat()} already exists")
    except Exception as e:
        logger.error(f"Failed to add holiday for tenant {tenant_id}: {e}")
        await db.rollback()
        raise


async def delete_holiday(db: AsyncSession, tenant_id: str, day: date) -> None:
    result = await db.execute(
        select(Holiday).filter(Holiday.tenant_id == tenant_id, Holiday.date == day)
    )
    holiday = result.scalars().first()
    if holiday is None:
        raise NotFoundError(f"No holiday on {day.isoformat()}")

    try:
        await db.delete(holiday)
        await db.commit()
        logger.info(f"Holiday {day.isoformat()} removed for tenant {tenant_id}")
    except Exception as e:
        logger.error(f"Failed to delete holiday for tenant {tenant_id}: {e}")
        await db.rollback()
        raise


async def load_sla_policy(db: AsyncSession, tenant_id: str) -> SlaPolicy:
    """
    The tenant's SlaPolicy with its holiday calendar attached. New deadlines
    copy the holidays they need; existing ones never read the calendar again.
    """
    values = await get_sla_values(db, tenant_id)
    holidays = await list_holidays(db, tenant_id)
    return build_policy(values, [h.date for h in holidays])
