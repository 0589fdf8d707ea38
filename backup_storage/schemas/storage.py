"""Storage schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from backup_storage.models import (
    AzureBlobStorage,
    FTPStorage,
    GoogleDriveStorage,
    LocalStorage,
    MultiStorage,
    NASStorage,
    S3Storage,
    Storage,
)
from backup_storage.storage.types import AUTH_METHOD_ACCOUNT_KEY, StorageType


class CamelModel(BaseModel):
    """Base schema using camelCase JSON keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class LocalStorageSchema(CamelModel):
    path: Optional[str] = None


class S3StorageSchema(CamelModel):
    s3_bucket: str = ""
    s3_region: Optional[str] = None
    s3_access_key: str = ""
    s3_secret_key: str = ""
    s3_endpoint: Optional[str] = None
    s3_prefix: Optional[str] = None
    s3_use_virtual_hosted_style: bool = False


class GoogleDriveStorageSchema(CamelModel):
    client_id: str = ""
    client_secret: str = ""
    token_json: Optional[str] = None
    folder_name: Optional[str] = None


class NASStorageSchema(CamelModel):
    host: str = ""
    port: int = 445
    share: str = ""
    username: str = ""
    password: str = ""
    use_ssl: bool = False
    domain: Optional[str] = None
    path: Optional[str] = None


class AzureBlobStorageSchema(CamelModel):
    auth_method: str = AUTH_METHOD_ACCOUNT_KEY
    connection_string: Optional[str] = None
    account_name: Optional[str] = None
    account_key: Optional[str] = None
    container_name: str = ""
    endpoint: Optional[str] = None
    prefix: Optional[str] = None


class FTPStorageSchema(CamelModel):
    host: str = ""
    port: int = 21
    username: str = ""
    password: str = ""
    use_ssl: bool = False
    skip_tls_verify: bool = False
    path: Optional[str] = None


class MultiStorageSchema(CamelModel):
    primary_id: Optional[uuid.UUID] = None
    secondary_id: Optional[uuid.UUID] = None


_VARIANT_SCHEMAS = {
    "local_storage": (LocalStorageSchema, LocalStorage),
    "s3_storage": (S3StorageSchema, S3Storage),
    "google_drive_storage": (GoogleDriveStorageSchema, GoogleDriveStorage),
    "nas_storage": (NASStorageSchema, NASStorage),
    "azure_blob_storage": (AzureBlobStorageSchema, AzureBlobStorage),
    "ftp_storage": (FTPStorageSchema, FTPStorage),
    "multi_storage": (MultiStorageSchema, MultiStorage),
}


class StorageBase(CamelModel):
    """Fields shared by storage requests and responses."""

    type: StorageType = Field(..., description="Storage backend kind")
    name: str = Field(..., description="Display name")

    local_storage: Optional[LocalStorageSchema] = None
    s3_storage: Optional[S3StorageSchema] = None
    google_drive_storage: Optional[GoogleDriveStorageSchema] = None
    nas_storage: Optional[NASStorageSchema] = None
    azure_blob_storage: Optional[AzureBlobStorageSchema] = None
    ftp_storage: Optional[FTPStorageSchema] = None
    multi_storage: Optional[MultiStorageSchema] = None


class StorageRequest(StorageBase):
    """Schema for creating or updating a storage.

    workspace_id comes from the caller's context, not from the body.
    """

    id: Optional[uuid.UUID] = None

    def to_model(self, workspace_id: Optional[uuid.UUID] = None) -> Storage:
        """Build a transient Storage row from the request."""
        storage = Storage(id=self.id, workspace_id=workspace_id, type=self.type, name=self.name)

        for slot, (_, model_class) in _VARIANT_SCHEMAS.items():
            variant = getattr(self, slot)
            if variant is not None:
                setattr(storage, slot, model_class(**variant.model_dump(by_alias=False)))

        return storage


class StorageResponse(StorageBase):
    """Schema for storage response.

    Build it from a storage returned by ``StorageService.get_storage`` so
    secret fields are already blank.
    """

    id: uuid.UUID
    workspace_id: uuid.UUID
    last_save_error: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
