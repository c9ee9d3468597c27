"""Database models for the marketplace."""

from marketplace.db.models.account import AccountModel
from marketplace.db.models.business import BusinessModel, BusinessFileModel
from marketplace.db.models.nda import NdaModel
from marketplace.db.models.deletion import DeletionRequestModel
from marketplace.db.models.approval import ApprovalHistoryModel

__all__ = [
    "AccountModel",
    "BusinessModel",
    "BusinessFileModel",
    "NdaModel",
    "DeletionRequestModel",
    "ApprovalHistoryModel",
]
