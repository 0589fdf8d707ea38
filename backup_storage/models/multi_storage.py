"""Multi-storage (replicated) model."""

from sqlalchemy import Column, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from backup_storage.database import Base
from backup_storage.models.variant import StorageVariantMixin
from backup_storage.storage.base import StorageValidationError


class MultiStorage(StorageVariantMixin, Base):
    """Composite storage replicating to two other storages.

    ``primary_id`` and ``secondary_id`` reference other storages without
    owning them. ``primary``, ``secondary`` and ``temp_folder`` are not
    persisted; they are attached by
    ``StorageRepository.resolve_multi_storage`` before any I/O.
    """

    __tablename__ = "multi_storages"

    storage_id = Column(Uuid(as_uuid=True), ForeignKey("storages.id", ondelete="CASCADE"), primary_key=True)
    primary_id = Column(Uuid(as_uuid=True), ForeignKey("storages.id"), nullable=False, index=True)
    secondary_id = Column(Uuid(as_uuid=True), ForeignKey("storages.id"), nullable=False, index=True)

    storage = relationship("Storage", back_populates="multi_storage", foreign_keys=[storage_id])

    plain_fields = ("primary_id", "secondary_id")

    # Resolved legs, never persisted
    primary = None
    secondary = None
    temp_folder = None

    def validate(self, encryptor) -> None:
        if self.primary_id is None:
            raise StorageValidationError("primary storage is required")
        if self.secondary_id is None:
            raise StorageValidationError("secondary storage is required")
        if self.primary_id == self.secondary_id:
            raise StorageValidationError("primary and secondary storage must be different")

    def hide_sensitive_data(self) -> None:
        pass

    def encrypt_sensitive_data(self, encryptor) -> None:
        pass

    def set_storages(self, primary, secondary, temp_folder=None) -> None:
        self.primary = primary
        self.secondary = secondary
        self.temp_folder = temp_folder

    def __repr__(self):
        return (
            f"<MultiStorage(storage_id={self.storage_id}, primary_id={self.primary_id}, "
            f"secondary_id={self.secondary_id})>"
        )
