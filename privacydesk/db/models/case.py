# privacydesk/db/models/case.py
"""DSAR case model"""
from sqlalchemy import Column, Integer, String, Text, Enum, DateTime, Index, UniqueConstraint
from sqlalchemy.orm import relationship

from privacydesk.db.models.base import Base, TimestampMixin, UUIDMixin
from privacydesk.core.enums import CaseType, CasePriority, CaseStatus


class Case(Base, UUIDMixin, TimestampMixin):
    """Data subject request case"""
    __tablename__ = "dsar_cases"

    tenant_id = Column(String(64), nullable=False, index=True)
    case_number = Column(String(32), nullable=False)  # Immutable after creation
    type = Column(Enum(CaseType), nullable=False)
    priority = Column(Enum(CasePriority), nullable=False, default=CasePriority.MEDIUM)
    status = Column(Enum(CaseStatus), nullable=False, default=CaseStatus.NEW, index=True)
    description = Column(Text, nullable=True)
    received_at = Column(DateTime(timezone=True), nullable=False)

    # Optimistic concurrency: every UPDATE carries WHERE version = <loaded>
    version = Column(Integer, nullable=False, default=1)

    deadline = relationship(
        "CaseDeadline",
        back_populates="case",
        uselist=False,
        lazy="selectin",
        cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint("tenant_id", "case_number", name="uq_case_tenant_number"),
        Index("idx_case_tenant_status", "tenant_id", "status"),
        Index("idx_case_received", "received_at"),
    )

    # The counter is bumped explicitly by every mutation so an update that only
    # touches the deadline row still carries the version check
    __mapper_args__ = {"version_id_col": version, "version_id_generator": False}

    def __repr__(self):
        return f"<Case case_number={self.case_number} status={self.status}>"
