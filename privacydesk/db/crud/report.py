# privacydesk/db/crud/report.py
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from datetime import datetime
from loguru import logger

from privacydesk.core.deadline import as_utc
from privacydesk.core.reporting import SlaReportRow, SlaSummary, build_rows, build_summary
from privacydesk.db.crud.case import list_tenant_case_records
from privacydesk.db.crud.sla_config import load_sla_policy
from privacydesk.utils.helpers import utc_now


async def get_summary(db: AsyncSession, tenant_id: str, now: Optional[datetime] = None) -> SlaSummary:
    """Tenant SLA summary recomputed for `now`; read-only"""
    now = as_utc(now or utc_now())
    policy = await load_sla_policy(db, tenant_id)
    records = await list_tenant_case_records(db, tenant_id)
    summary = build_summary(records, now, policy)
    logger.debug(f"SLA summary for tenant {tenant_id}: {summary.total_cases} cases, {summary.overdue} overdue")
    return summary


async def get_rows(db: AsyncSession, tenant_id: str, now: Optional[datetime] = None) -> List[SlaReportRow]:
    """Per-case SLA export rows recomputed for `now`; read-only"""
    now = as_utc(now or utc_now())
    policy = await load_sla_policy(db, tenant_id)
    records = await list_tenant_case_records(db, tenant_id)
    return build_rows(records, now, policy)
