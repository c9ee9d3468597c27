"""Business listing and business file models."""

import uuid
from sqlalchemy import Column, String, DateTime, Float, ForeignKey, Text, Uuid
from sqlalchemy.orm import relationship

from marketplace.core.entities import utcnow
from marketplace.db.base import Base


class BusinessModel(Base):
    """A business offered for sale, owned by exactly one account."""
    __tablename__ = "businesses"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid, ForeignKey("accounts.id"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=True, index=True)
    category = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)
    asking_price = Column(Float, nullable=True)

    # Workflow state
    status = Column(String(20), nullable=False, default="pending", index=True)

    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    owner = relationship("AccountModel")
    files = relationship("BusinessFileModel", back_populates="business", passive_deletes=True)

    def __repr__(self) -> str:
        return f"<Business {self.name} [{self.status}]>"


class BusinessFileModel(Base):
    """A document attached to a listing, stored in blob storage at ``file_path``."""
    __tablename__ = "business_files"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    business_id = Column(
        Uuid, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    file_path = Column(String(1024), nullable=False, unique=True, index=True)
    file_name = Column(String(255), nullable=True)
    visibility = Column(String(20), nullable=False, default="public")
    created_at = Column(DateTime, default=utcnow)

    business = relationship("BusinessModel", back_populates="files")

    def __repr__(self) -> str:
        return f"<BusinessFile {self.file_path} [{self.visibility}]>"
