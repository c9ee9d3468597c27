"""Business file registration and visibility management."""

from typing import Optional, Union
from uuid import UUID

from marketplace.common.logger import get_logger
from marketplace.core.config import Settings, get_settings
from marketplace.core.entities import Actor, BusinessFile, BusinessListing, Visibility
from marketplace.core.errors import ForbiddenError
from marketplace.core.store import BUSINESS_FILES, BUSINESSES, DataStore

logger = get_logger("files")


class FileService:
    """Only a listing's owner or an admin may attach files or change their tier."""

    def __init__(self, store: DataStore, settings: Optional[Settings] = None):
        self.store = store
        self.settings = settings or get_settings()

    def _require_manager(self, actor: Actor, listing: BusinessListing) -> None:
        if not (actor.is_admin or actor.owns(listing)):
            raise ForbiddenError("Only the listing owner or an admin may manage its files")

    def add_file(
        self,
        actor: Actor,
        listing_id: UUID,
        *,
        file_path: str,
        file_name: Optional[str] = None,
        visibility: Optional[Union[Visibility, str]] = None,
    ) -> BusinessFile:
        """Record an uploaded file; the tier defaults to ``default_file_visibility``."""
        listing = BusinessListing.from_record(self.store.get(BUSINESSES, listing_id))
        self._require_manager(actor, listing)

        tier = Visibility(visibility) if visibility is not None else self.settings.default_file_visibility
        record = self.store.insert(
            BUSINESS_FILES,
            {
                "business_id": listing.id,
                "file_path": file_path,
                "file_name": file_name or file_path.rsplit("/", 1)[-1],
                "visibility": tier.value,
            },
        )
        logger.info("Added %s file %s to listing %s", tier.value, record["id"], listing.id)
        return BusinessFile.from_record(record)

    def set_visibility(self, actor: Actor, file_id: UUID, visibility: Union[Visibility, str]) -> BusinessFile:
        tier = Visibility(visibility)
        file = BusinessFile.from_record(self.store.get(BUSINESS_FILES, file_id))
        listing = BusinessListing.from_record(self.store.get(BUSINESSES, file.business_id))
        self._require_manager(actor, listing)

        record = self.store.update(BUSINESS_FILES, file.id, {"visibility": tier.value})
        logger.info(
            "File %s visibility %s -> %s by %s",
            file.id, file.visibility.value, tier.value, actor.account_id,
        )
        return BusinessFile.from_record(record)
