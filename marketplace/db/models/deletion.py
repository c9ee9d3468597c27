import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, Index, Text, Uuid, text

from marketplace.core.entities import utcnow
from marketplace.db.base import Base


class DeletionRequestModel(Base):
    """
    An owner's request to remove their listing.

    ``business_id`` carries no foreign key: an approved request outlives the
    listing it removed.
    """
    __tablename__ = "deletion_requests"
    __table_args__ = (
        Index(
            "uq_deletion_requests_open_business",
            "business_id",
            unique=True,
            sqlite_where=text("status = 'pending'"),
            postgresql_where=text("status = 'pending'"),
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    requester_id = Column(Uuid, ForeignKey("accounts.id"), nullable=False, index=True)
    business_id = Column(Uuid, nullable=False, index=True)
    reason = Column(Text, nullable=True)

    status = Column(String(20), nullable=False, default="pending", index=True)
    processed_at = Column(DateTime, nullable=True)
    processed_by = Column(Uuid, ForeignKey("accounts.id"), nullable=True)

    created_at = Column(DateTime, default=utcnow, index=True)

    def __repr__(self) -> str:
        return f"<DeletionRequest {self.business_id} [{self.status}]>"
