"""
Database connectivity and health check script
"""
import asyncio
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from privacydesk.db.database import AsyncSessionLocal
from privacydesk.db.models import (
    Case, CaseDeadline, CaseMilestone, DeadlineEvent, StateTransition, Holiday, TenantSlaConfig,
)
from sqlalchemy import func, select, text
from loguru import logger

TABLES = {
    "Cases": Case,
    "Deadlines": CaseDeadline,
    "State transitions": StateTransition,
    "Milestones": CaseMilestone,
    "Deadline events": DeadlineEvent,
    "Holidays": Holiday,
    "Tenant SLA configs": TenantSlaConfig,
}


async def check_database():
    """Check database connectivity and table status"""
    logger.info("🔍 Checking database connectivity...")

    try:
        async with AsyncSessionLocal() as db:
            await db.execute(text("SELECT 1"))
            logger.info("✅ Database connection successful")

            logger.info("📊 Database statistics:")
            for label, model in TABLES.items():
                count = await db.scalar(select(func.count()).select_from(model))
                logger.info(f"   {label}: {count}")

            # Every case must have exactly one deadline row
            orphans = await db.scalar(
                select(func.count()).select_from(Case).outerjoin(CaseDeadline).where(CaseDeadline.id.is_(None))
            )
            if orphans:
                logger.warning(f"⚠️ {orphans} cases without a deadline row")

    except Exception as e:
        logger.error(f"❌ Database check failed: {e}")
        raise


if __name__ == "__main__":
    asyncio.run(check_database())
