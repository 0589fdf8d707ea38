"""Azure Blob storage model."""

from sqlalchemy import Column, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from backup_storage.database import Base
from backup_storage.models.variant import StorageVariantMixin
from backup_storage.storage.base import StorageValidationError
from backup_storage.storage.types import AUTH_METHOD_ACCOUNT_KEY, AUTH_METHOD_CONNECTION_STRING


class AzureBlobStorage(StorageVariantMixin, Base):
    """Azure Blob container settings.

    Authenticates either with an account name and key or with a full
    connection string, selected by ``auth_method``.
    """

    __tablename__ = "azure_blob_storages"

    storage_id = Column(Uuid(as_uuid=True), ForeignKey("storages.id", ondelete="CASCADE"), primary_key=True)
    auth_method = Column(String(50), default=AUTH_METHOD_ACCOUNT_KEY, nullable=False)
    connection_string = Column(Text, nullable=True)  # encrypted
    account_name = Column(String(255), nullable=True)
    account_key = Column(Text, nullable=True)  # encrypted
    container_name = Column(String(255), nullable=False)
    endpoint = Column(String(500), nullable=True)
    prefix = Column(String(500), nullable=True)

    storage = relationship("Storage", back_populates="azure_blob_storage")

    plain_fields = ("auth_method", "account_name", "container_name", "endpoint", "prefix")
    sensitive_fields = ("connection_string", "account_key")

    def validate(self, encryptor) -> None:
        self._require(container_name=self.container_name)

        if self.auth_method == AUTH_METHOD_CONNECTION_STRING:
            self._require(connection_string=self.connection_string)
        elif self.auth_method == AUTH_METHOD_ACCOUNT_KEY:
            self._require(account_name=self.account_name, account_key=self.account_key)
        else:
            raise StorageValidationError(f"invalid auth method: {self.auth_method}")

    def __repr__(self):
        return f"<AzureBlobStorage(storage_id={self.storage_id}, container={self.container_name})>"
