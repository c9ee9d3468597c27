import uuid
from sqlalchemy import Column, String, DateTime, JSON, ForeignKey, Index, Uuid, text

from marketplace.core.entities import utcnow
from marketplace.db.base import Base


class NdaModel(Base):
    """
    Non-disclosure agreement between an account and a listing.

    At most one pending record may exist per (account, listing) pair; the
    partial unique index backs up the check the NDA tracker makes.
    """
    __tablename__ = "ndas"
    __table_args__ = (
        Index(
            "uq_ndas_open_pair",
            "user_id",
            "business_id",
            unique=True,
            sqlite_where=text("status = 'pending'"),
            postgresql_where=text("status = 'pending'"),
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("accounts.id"), nullable=False, index=True)
    business_id = Column(
        Uuid, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True
    )

    status = Column(String(20), nullable=False, default="pending", index=True)
    terms = Column(JSON, nullable=False, default=dict)

    signed_at = Column(DateTime, nullable=True)
    resolved_at = Column(DateTime, nullable=True)
    resolved_by = Column(Uuid, ForeignKey("accounts.id"), nullable=True)
    expires_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow, index=True)

    def __repr__(self) -> str:
        return f"<Nda {self.user_id} -> {self.business_id} [{self.status}]>"
