"""Local filesystem storage model."""

from sqlalchemy import Column, ForeignKey, String, Uuid
from sqlalchemy.orm import relationship

from backup_storage.database import Base
from backup_storage.models.variant import StorageVariantMixin
from backup_storage.storage.base import StorageValidationError


class LocalStorage(StorageVariantMixin, Base):
    """Backups kept in a directory on the host.

    ``path`` is optional; when empty the driver uses ``<data_folder>/backups``.
    """

    __tablename__ = "local_storages"

    storage_id = Column(Uuid(as_uuid=True), ForeignKey("storages.id", ondelete="CASCADE"), primary_key=True)
    path = Column(String(1000), nullable=True)

    storage = relationship("Storage", back_populates="local_storage")

    plain_fields = ("path",)

    def validate(self, encryptor) -> None:
        if self.path and "\x00" in self.path:
            raise StorageValidationError("path contains invalid characters")

    def __repr__(self):
        return f"<LocalStorage(storage_id={self.storage_id}, path={self.path})>"
