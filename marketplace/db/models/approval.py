"""Approval audit trail.

Every decision on a listing, deletion request or NDA writes one row here in
the same transaction as the status change it records.
"""

import uuid
from sqlalchemy import Column, String, DateTime, Text, Uuid

from marketplace.core.entities import utcnow
from marketplace.db.base import Base


class ApprovalHistoryModel(Base):
    __tablename__ = "approval_history"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    workflow = Column(String(50), nullable=False, index=True)
    request_id = Column(Uuid, nullable=False, index=True)

    # Transition details
    from_state = Column(String(20), nullable=False)
    to_state = Column(String(20), nullable=False)

    # Actor
    actor_id = Column(Uuid, nullable=True)
    comment = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow, index=True)

    def __repr__(self) -> str:
        return f"<ApprovalHistory {self.workflow} {self.from_state} -> {self.to_state}>"
