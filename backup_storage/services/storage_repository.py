"""Storage persistence: parent row plus one variant row, saved atomically."""

import logging
import uuid
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from backup_storage.config import settings
from backup_storage.models.storage import Storage
from backup_storage.storage.base import (
    StorageNotFoundError,
    StoragePersistenceError,
    StorageValidationError,
)
from backup_storage.storage.types import VARIANT_SLOTS, StorageType

logger = logging.getLogger(__name__)

_EAGER_VARIANTS = [joinedload(getattr(Storage, slot)) for slot in VARIANT_SLOTS.values()]


class StorageRepository:
    """Load, save and delete storages.

    Args:
        db: Database session, one per unit of work
        temp_folder: Staging folder handed to resolved multi storages
    """

    def __init__(self, db: Session, temp_folder: Optional[str] = None):
        self.db = db
        self.temp_folder = temp_folder or settings.temp_folder

    def save(self, storage: Storage) -> Storage:
        """Create or update a storage and its variant in one transaction.

        Variant rows in slots other than the one selected by ``type`` are
        removed, so a storage never owns more than one variant row.

        Raises:
            UnsupportedStorageTypeError: If type and variant disagree
            StoragePersistenceError: If the transaction fails (rolled back)
        """
        variant = storage.get_variant()
        selected_slot = VARIANT_SLOTS[StorageType(storage.type)]

        try:
            if storage.id is None:
                storage.id = uuid.uuid4()
            variant.storage_id = storage.id

            for slot in storage.populated_slots():
                if slot != selected_slot:
                    setattr(storage, slot, None)

            self.db.add(storage)
            self.db.flush()

            self.db.add(variant)
            self.db.flush()

            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to save storage {storage.id}: {e}", exc_info=True)
            raise StoragePersistenceError(f"failed to save storage: {e}") from e

        return storage

    def find_by_id(self, storage_id: uuid.UUID) -> Storage:
        """Get storage by ID with every variant slot loaded.

        Multi-storage legs are not resolved; see ``resolve_multi_storage``.

        Raises:
            StorageNotFoundError: If storage not found
        """
        try:
            storage = (
                self.db.query(Storage)
                .options(*_EAGER_VARIANTS)
                .filter(Storage.id == storage_id)
                .first()
            )
        except SQLAlchemyError as e:
            raise StoragePersistenceError(f"failed to load storage {storage_id}: {e}") from e

        if not storage:
            raise StorageNotFoundError(f"storage {storage_id} not found")

        return storage

    def find_by_workspace_id(self, workspace_id: uuid.UUID) -> List[Storage]:
        """Get all storages of a workspace ordered by name."""
        try:
            return (
                self.db.query(Storage)
                .options(*_EAGER_VARIANTS)
                .filter(Storage.workspace_id == workspace_id)
                .order_by(Storage.name.asc())
                .all()
            )
        except SQLAlchemyError as e:
            raise StoragePersistenceError(
                f"failed to load storages for workspace {workspace_id}: {e}"
            ) from e

    def resolve_multi_storage(self, storage: Storage) -> Storage:
        """Attach primary and secondary storages to a multi storage.

        Must run before any I/O on a multi storage. Does nothing for other
        storage types.

        Raises:
            StorageValidationError: If a leg id is missing
            StorageNotFoundError: If a leg does not exist
        """
        if storage.type != StorageType.MULTI or storage.multi_storage is None:
            return storage

        multi = storage.multi_storage
        if multi.primary_id is None or multi.secondary_id is None:
            raise StorageValidationError("primary and secondary storage IDs are required")

        try:
            primary = self.find_by_id(multi.primary_id)
        except StorageNotFoundError as e:
            raise StorageNotFoundError(f"failed to load primary storage: {e}") from e

        try:
            secondary = self.find_by_id(multi.secondary_id)
        except StorageNotFoundError as e:
            raise StorageNotFoundError(f"failed to load secondary storage: {e}") from e

        multi.set_storages(primary, secondary, self.temp_folder)
        return storage

    def delete(self, storage: Storage) -> None:
        """Delete variant row then parent row in one transaction.

        References from other multi storages are not checked here.

        Raises:
            StoragePersistenceError: If the transaction fails (rolled back)
        """
        try:
            # Orphaned variant rows are deleted by the relationship cascade
            for slot in storage.populated_slots():
                setattr(storage, slot, None)
            self.db.flush()

            self.db.delete(storage)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to delete storage {storage.id}: {e}", exc_info=True)
            raise StoragePersistenceError(f"failed to delete storage: {e}") from e
