"""Storage business logic service."""

import logging
import uuid
from typing import BinaryIO, List, Optional

from sqlalchemy.orm import Session

from backup_storage.models.storage import Storage
from backup_storage.services.storage_repository import StorageRepository
from backup_storage.storage.base import (
    SaveContext,
    StorageError,
    StorageNotFoundError,
    StoragePermissionError,
    StorageValidationError,
)
from backup_storage.storage.encryption import FernetFieldEncryptor, FieldEncryptor
from backup_storage.storage.types import StorageType

logger = logging.getLogger(__name__)


class StorageService:
    """Storage operations for a permission-checked caller.

    Permission checks and audit logging happen upstream. This service
    enforces workspace ownership of storages, runs the
    update -> encrypt -> validate -> persist sequence on writes, and hides
    secrets on reads.

    Args:
        db: Database session, one per request
        encryptor: Field encryptor, defaults to Fernet with the configured key
        repository: Storage repository, defaults to one bound to ``db``
    """

    def __init__(
        self,
        db: Session,
        encryptor: Optional[FieldEncryptor] = None,
        repository: Optional[StorageRepository] = None,
    ):
        self.db = db
        self.encryptor = encryptor or FernetFieldEncryptor()
        self.repository = repository or StorageRepository(db)

    def save_storage(self, workspace_id: uuid.UUID, storage: Storage) -> Storage:
        """Create or update a storage.

        Args:
            workspace_id: Workspace the storage belongs to
            storage: Incoming storage; with ``id`` set it updates that storage

        Returns:
            Persisted storage (secrets encrypted, not hidden)

        Raises:
            StoragePermissionError: If the existing storage is in another workspace
            StorageValidationError: If the configuration is incomplete
            StorageNotFoundError: If the storage or a multi-storage leg is missing
            StoragePersistenceError: If the transaction fails
        """
        is_update = storage.id is not None

        try:
            if is_update:
                target = self.repository.find_by_id(storage.id)
                if target.workspace_id != workspace_id:
                    raise StoragePermissionError("storage does not belong to this workspace")
                target.update(storage)
            else:
                storage.workspace_id = workspace_id
                target = storage

            target.encrypt_sensitive_data(self.encryptor)
            target.validate(self.encryptor)
            self.validate_multi_storage_references(target)
        except StorageError:
            # Discard merged changes on the loaded row
            self.db.rollback()
            raise

        saved = self.repository.save(target)

        action = "updated" if is_update else "created"
        logger.info(f"Storage {action}: {saved.name} ({saved.id}) in workspace {workspace_id}")
        return saved

    def validate(self, storage: Storage) -> None:
        """Full validation: structure plus multi-storage references."""
        storage.validate(self.encryptor)
        self.validate_multi_storage_references(storage)

    def validate_multi_storage_references(self, storage: Storage) -> None:
        """Check multi-storage legs exist, are not multi, share the workspace.

        Raises:
            StorageNotFoundError: If a leg does not exist
            StorageValidationError: If a leg is a multi storage or in another workspace
        """
        if storage.type != StorageType.MULTI or storage.multi_storage is None:
            return

        multi = storage.multi_storage
        legs = (("primary", multi.primary_id), ("secondary", multi.secondary_id))

        for label, leg_id in legs:
            try:
                leg = self.repository.find_by_id(leg_id)
            except StorageNotFoundError as e:
                raise StorageNotFoundError(f"{label} storage not found: {e}") from e

            if leg.type == StorageType.MULTI:
                raise StorageValidationError(f"{label} storage cannot be a multi-storage")

            if leg.workspace_id != storage.workspace_id:
                raise StorageValidationError(f"{label} storage must belong to the same workspace")

    def get_storage(self, storage_id: uuid.UUID) -> Storage:
        """Get storage for display, with secrets hidden.

        The returned row is detached from the session so hiding can never
        be flushed back to the database.
        """
        storage = self.repository.find_by_id(storage_id)
        self.db.expunge(storage)
        storage.hide_sensitive_data()
        return storage

    def get_storages(self, workspace_id: uuid.UUID) -> List[Storage]:
        """Get all storages of a workspace for display, with secrets hidden."""
        storages = self.repository.find_by_workspace_id(workspace_id)

        for storage in storages:
            self.db.expunge(storage)
            storage.hide_sensitive_data()

        return storages

    def get_storage_by_id(self, storage_id: uuid.UUID) -> Storage:
        """Get storage ready for I/O: secrets intact, multi legs resolved."""
        storage = self.repository.find_by_id(storage_id)
        return self.repository.resolve_multi_storage(storage)

    def delete_storage(self, storage_id: uuid.UUID) -> None:
        """Delete a storage and its variant.

        Multi storages referencing it are not checked.
        """
        storage = self.repository.find_by_id(storage_id)
        self.repository.delete(storage)
        logger.info(f"Storage deleted: {storage.name} ({storage_id})")

    def on_before_workspace_deletion(self, workspace_id: uuid.UUID) -> None:
        """Delete every storage of a workspace."""
        storages = self.repository.find_by_workspace_id(workspace_id)

        # Multi storages first, so their legs are no longer referenced
        storages.sort(key=lambda s: s.type != StorageType.MULTI)

        for storage in storages:
            try:
                self.repository.delete(storage)
            except StorageError as e:
                raise StorageError(f"failed to delete storage {storage.id}: {e}") from e

        logger.info(f"Deleted {len(storages)} storage(s) of workspace {workspace_id}")

    async def test_storage_connection(self, storage_id: uuid.UUID) -> None:
        """Test a saved storage and record the outcome in ``last_save_error``."""
        storage = self.get_storage_by_id(storage_id)

        try:
            await storage.test_connection(self.encryptor)
        except StorageError as e:
            storage.last_save_error = str(e)
            self.repository.save(storage)
            logger.warning(f"Connection test failed for storage {storage.name} ({storage.id}): {e}")
            raise

        storage.last_save_error = None
        self.repository.save(storage)

    async def test_storage_connection_direct(self, storage: Storage) -> None:
        """Test an unsaved or edited configuration without persisting it.

        When ``storage.id`` is set, the incoming fields are merged onto the
        saved storage first, so blank secrets fall back to the stored ones.
        """
        try:
            if storage.id is not None:
                existing = self.repository.find_by_id(storage.id)
                if existing.workspace_id != storage.workspace_id:
                    raise StoragePermissionError("storage does not belong to this workspace")
                existing.update(storage)
                using_storage = existing
            else:
                using_storage = storage

            self.validate(using_storage)
            self.repository.resolve_multi_storage(using_storage)
            await using_storage.test_connection(self.encryptor)
        finally:
            self.db.rollback()

    async def save_file(
        self,
        workspace_id: uuid.UUID,
        storage_id: uuid.UUID,
        file_id: uuid.UUID,
        stream: BinaryIO,
        ctx: Optional[SaveContext] = None,
    ) -> None:
        """Store a backup file and persist the save outcome on the storage.

        Raises:
            StoragePermissionError: If the storage is in another workspace
            StorageError: If the backend write fails
        """
        storage = self.repository.find_by_id(storage_id)
        if storage.workspace_id != workspace_id:
            raise StoragePermissionError("storage does not belong to this workspace")

        self.repository.resolve_multi_storage(storage)
        ctx = ctx or SaveContext(workspace_id=workspace_id)

        try:
            await storage.save_file(ctx, self.encryptor, file_id, stream)
        except Exception as e:
            logger.error(f"Failed to save file {file_id} to storage {storage.name} ({storage.id}): {e}")
            self._record_failed_save(storage)
            raise

        self.repository.save(storage)
        logger.info(f"Saved file {file_id} to storage {storage.name} ({storage.id})")

    async def get_file(self, storage_id: uuid.UUID, file_id: uuid.UUID) -> BinaryIO:
        storage = self.get_storage_by_id(storage_id)
        return await storage.get_file(self.encryptor, file_id)

    async def delete_file(self, storage_id: uuid.UUID, file_id: uuid.UUID) -> None:
        storage = self.get_storage_by_id(storage_id)
        await storage.delete_file(self.encryptor, file_id)
        logger.info(f"Deleted file {file_id} from storage {storage.name} ({storage.id})")

    def _record_failed_save(self, storage: Storage) -> None:
        """Persist ``last_save_error`` without masking the original failure."""
        try:
            self.repository.save(storage)
        except StorageError as e:
            logger.error(f"Failed to record save error on storage {storage.id}: {e}", exc_info=True)
