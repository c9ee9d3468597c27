import uuid
from sqlalchemy import Column, String, DateTime, Uuid

from marketplace.core.entities import utcnow
from marketplace.db.base import Base


class AccountModel(Base):
    """Local mirror of an identity-provider account and its role claim.

    ``email`` is optional: provider sessions need not carry one.
    """
    __tablename__ = "accounts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=True, index=True)
    name = Column(String(255))
    role = Column(String(20), nullable=False, default="member")
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Account {self.email} [{self.role}]>"
