# privacydesk/api/v1/endpoints/reports.py
"""SLA reporting endpoints; read-only and recomputed for the requested time"""
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from datetime import datetime

from privacydesk.db.database import get_db
from privacydesk.db import crud
from privacydesk.api.v1.schemas.reports import SlaSummaryResponse, SlaReportResponse, SlaReportRowResponse
from privacydesk.auth.dependencies import get_tenant_id
from privacydesk.core.deadline import as_utc
from privacydesk.core.reporting import rows_to_csv
from privacydesk.utils.helpers import utc_now

router = APIRouter()


@router.get("/sla/summary", response_model=SlaSummaryResponse)
async def get_sla_summary(
    now: Optional[datetime] = Query(None, description="Reference time (defaults to server time)"),
    db: AsyncSession = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    """Overdue and due-soon counts, risk distribution and closure statistics"""
    summary = await crud.report.get_summary(db, tenant_id, as_utc(now) if now else utc_now())
    return SlaSummaryResponse.from_summary(summary)


@router.get("/sla", response_model=SlaReportResponse)
async def get_sla_report(
    now: Optional[datetime] = Query(None, description="Reference time (defaults to server time)"),
    format: str = Query("json", pattern="^(json|csv)$", description="json or csv"),
    db: AsyncSession = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    """Per-case SLA export"""
    reference = as_utc(now) if now else utc_now()
    rows = await crud.report.get_rows(db, tenant_id, reference)

    if format == "csv":
        filename = f"sla-report-{reference.date().isoformat()}.csv"
        return Response(
            content=rows_to_csv(rows),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'}
        )

    return SlaReportResponse(
        generated_at=reference,
        total=len(rows),
        rows=[SlaReportRowResponse.model_validate(row) for row in rows],
    )
