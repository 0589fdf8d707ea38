"""Google Drive storage model."""

import json

from sqlalchemy import Column, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from backup_storage.database import Base
from backup_storage.models.variant import StorageVariantMixin
from backup_storage.storage.base import StorageValidationError


class GoogleDriveStorage(StorageVariantMixin, Base):
    """Google Drive OAuth client settings.

    ``token_json`` is the OAuth token document returned by the consent flow
    and must carry a ``refresh_token``.
    """

    __tablename__ = "google_drive_storages"

    storage_id = Column(Uuid(as_uuid=True), ForeignKey("storages.id", ondelete="CASCADE"), primary_key=True)
    client_id = Column(String(500), nullable=False)
    client_secret = Column(Text, nullable=False)  # encrypted
    token_json = Column(Text, nullable=True)  # encrypted
    folder_name = Column(String(255), nullable=True)

    storage = relationship("Storage", back_populates="google_drive_storage")

    plain_fields = ("client_id", "folder_name")
    sensitive_fields = ("client_secret", "token_json")

    def validate(self, encryptor) -> None:
        self._require(
            client_id=self.client_id,
            client_secret=self.client_secret,
            token_json=self.token_json,
        )

        try:
            token = json.loads(encryptor.decrypt(self.token_json))
        except (ValueError, TypeError):
            raise StorageValidationError("token json is not valid JSON")

        if not isinstance(token, dict) or not token.get("refresh_token"):
            raise StorageValidationError("token json must contain a refresh_token")

    def __repr__(self):
        return f"<GoogleDriveStorage(storage_id={self.storage_id}, client_id={self.client_id})>"
