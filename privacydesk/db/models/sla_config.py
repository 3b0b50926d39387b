# privacydesk/db/models/sla_config.py
"""Tenant SLA configuration and holiday calendar"""
from sqlalchemy import Column, Integer, String, Boolean, Date, UniqueConstraint

from privacydesk.db.models.base import Base, TimestampMixin


class TenantSlaConfig(Base, TimestampMixin):
    __tablename__ = "tenant_sla_configs"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String(64), nullable=False, unique=True, index=True)
    initial_deadline_days = Column(Integer, nullable=False, default=30)
    due_soon_threshold_days = Column(Integer, nullable=False, default=7)
    extension_max_days = Column(Integer, nullable=False, default=60)
    use_business_days = Column(Boolean, nullable=False, default=False)
    milestone_idv_days = Column(Integer, nullable=False, default=7)
    milestone_collection_days = Column(Integer, nullable=False, default=14)
    milestone_draft_days = Column(Integer, nullable=False, default=21)
    milestone_legal_days = Column(Integer, nullable=False, default=25)

    def __repr__(self):
        return f"<TenantSlaConfig tenant_id={self.tenant_id} days={self.initial_deadline_days}>"


class Holiday(Base, TimestampMixin):
    __tablename__ = "holidays"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String(64), nullable=False, index=True)
    date = Column(Date, nullable=False)
    name = Column(String(200), nullable=False)
    locale = Column(String(16), nullable=False, default="DE")

    __table_args__ = (
        UniqueConstraint("tenant_id", "date", name="uq_holiday_tenant_date"),
    )

    def __repr__(self):
        return f"<Holiday {self.date} {self.name}>"
