"""SQLAlchemy models."""

from backup_storage.database import Base
from backup_storage.models.storage import Storage
from backup_storage.models.local_storage import LocalStorage
from backup_storage.models.s3_storage import S3Storage
from backup_storage.models.google_drive_storage import GoogleDriveStorage
from backup_storage.models.nas_storage import NASStorage
from backup_storage.models.azure_blob_storage import AzureBlobStorage
from backup_storage.models.ftp_storage import FTPStorage
from backup_storage.models.multi_storage import MultiStorage
from backup_storage.storage.types import StorageType

__all__ = [
    "Base",
    "Storage",
    "StorageType",
    "LocalStorage",
    "S3Storage",
    "GoogleDriveStorage",
    "NASStorage",
    "AzureBlobStorage",
    "FTPStorage",
    "MultiStorage",
]
