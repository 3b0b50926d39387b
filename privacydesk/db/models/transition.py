# privacydesk/db/models/transition.py
"""Append-only status transition ledger"""
from sqlalchemy import Column, Integer, String, Text, Enum, DateTime, ForeignKey, Index

from privacydesk.db.models.base import Base, UUIDMixin
from privacydesk.core.enums import CaseStatus


class StateTransition(Base, UUIDMixin):
    __tablename__ = "case_state_transitions"

    tenant_id = Column(String(64), nullable=False)
    case_id = Column(Integer, ForeignKey("dsar_cases.id", ondelete="CASCADE"), nullable=False)
    from_status = Column(Enum(CaseStatus), nullable=False)
    to_status = Column(Enum(CaseStatus), nullable=False)
    changed_by = Column(String(128), nullable=False)
    reason = Column(Text, nullable=True)
    changed_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_transition_case_changed", "case_id", "changed_at"),
    )

    def __repr__(self):
        return f"<StateTransition case_id={self.case_id} {self.from_status} -> {self.to_status}>"
