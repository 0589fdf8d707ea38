"""Storage model."""

import uuid
from datetime import datetime
from typing import BinaryIO, List

from sqlalchemy import Column, DateTime, Enum, String, Text, Uuid
from sqlalchemy.orm import relationship

from backup_storage.database import Base
from backup_storage.storage.base import (
    SaveContext,
    StorageValidationError,
    UnsupportedStorageTypeError,
)
from backup_storage.storage.encryption import FieldEncryptor
from backup_storage.storage.factory import get_storage_driver
from backup_storage.storage.types import VARIANT_SLOTS, StorageType


class Storage(Base):
    """A configured backup destination.

    Exactly one variant relationship is populated, the one matching
    ``type``. Capability calls are dispatched to that variant's driver.
    """

    __tablename__ = "storages"

    id = Column(Uuid(as_uuid=True), primary_key=True)
    workspace_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    type = Column(Enum(StorageType, native_enum=False, length=32), nullable=False)
    name = Column(String(255), nullable=False)
    last_save_error = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Variant payloads
    local_storage = relationship("LocalStorage", uselist=False, back_populates="storage", cascade="all, delete-orphan")
    s3_storage = relationship("S3Storage", uselist=False, back_populates="storage", cascade="all, delete-orphan")
    google_drive_storage = relationship("GoogleDriveStorage", uselist=False, back_populates="storage", cascade="all, delete-orphan")
    nas_storage = relationship("NASStorage", uselist=False, back_populates="storage", cascade="all, delete-orphan")
    azure_blob_storage = relationship("AzureBlobStorage", uselist=False, back_populates="storage", cascade="all, delete-orphan")
    ftp_storage = relationship("FTPStorage", uselist=False, back_populates="storage", cascade="all, delete-orphan")
    multi_storage = relationship(
        "MultiStorage",
        uselist=False,
        back_populates="storage",
        cascade="all, delete-orphan",
        foreign_keys="MultiStorage.storage_id",
    )

    def __repr__(self):
        return f"<Storage(id={self.id}, type={self.type}, name={self.name})>"

    def get_variant(self):
        """Return the variant row selected by ``type``.

        Raises:
            UnsupportedStorageTypeError: If the type is unknown or its slot is empty
        """
        try:
            storage_type = StorageType(self.type)
        except ValueError:
            raise UnsupportedStorageTypeError(f"invalid storage type: {self.type}")

        variant = getattr(self, VARIANT_SLOTS[storage_type])
        if variant is None:
            raise UnsupportedStorageTypeError(
                f"storage type {storage_type.value} has no {VARIANT_SLOTS[storage_type]} configured"
            )
        return variant

    async def save_file(
        self,
        ctx: SaveContext,
        encryptor: FieldEncryptor,
        file_id: uuid.UUID,
        stream: BinaryIO,
    ) -> None:
        """Store content and record the outcome in ``last_save_error``."""
        try:
            driver = get_storage_driver(self, encryptor)
            await driver.save_file(ctx, file_id, stream)
        except Exception as e:
            self.last_save_error = str(e)
            raise

        self.last_save_error = None

    async def get_file(self, encryptor: FieldEncryptor, file_id: uuid.UUID) -> BinaryIO:
        return await get_storage_driver(self, encryptor).get_file(file_id)

    async def delete_file(self, encryptor: FieldEncryptor, file_id: uuid.UUID) -> None:
        await get_storage_driver(self, encryptor).delete_file(file_id)

    def validate(self, encryptor: FieldEncryptor) -> None:
        """Structural check of the configuration. No network I/O.

        Raises:
            StorageValidationError: If a required field is missing
            UnsupportedStorageTypeError: If type and variant disagree
        """
        if not self.type:
            raise StorageValidationError("storage type is required")

        if not self.name:
            raise StorageValidationError("storage name is required")

        if self.workspace_id is None:
            raise StorageValidationError("workspace is required")

        self.get_variant().validate(encryptor)

    async def test_connection(self, encryptor: FieldEncryptor) -> None:
        await get_storage_driver(self, encryptor).test_connection()

    def hide_sensitive_data(self) -> None:
        self.get_variant().hide_sensitive_data()

    def encrypt_sensitive_data(self, encryptor: FieldEncryptor) -> None:
        self.get_variant().encrypt_sensitive_data(encryptor)

    def update(self, incoming: "Storage") -> None:
        """Merge mutable fields from an incoming storage.

        The variant is merged only for the incoming type. When the type
        changes, the incoming variant is adopted as is.
        """
        self.name = incoming.name
        self.type = incoming.type

        try:
            slot = VARIANT_SLOTS[StorageType(incoming.type)]
        except ValueError:
            return

        current = getattr(self, slot)
        incoming_variant = getattr(incoming, slot)
        if incoming_variant is None:
            return

        if current is None:
            setattr(incoming, slot, None)
            setattr(self, slot, incoming_variant)
        else:
            current.update(incoming_variant)

    def populated_slots(self) -> List[str]:
        """Names of all populated variant relationships."""
        return [slot for slot in VARIANT_SLOTS.values() if getattr(self, slot) is not None]
