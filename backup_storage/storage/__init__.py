"""Storage drivers for backup destinations."""

from backup_storage.storage.base import (
    BaseStorageDriver,
    PartialReplicationError,
    SaveContext,
    StorageCancelledError,
    StorageConnectionError,
    StorageError,
    StorageNotFoundError,
    StoragePermissionError,
    StoragePersistenceError,
    StorageValidationError,
    UnsupportedStorageTypeError,
)
from backup_storage.storage.encryption import FernetFieldEncryptor, FieldEncryptor
from backup_storage.storage.types import StorageType

__all__ = [
    "BaseStorageDriver",
    "FernetFieldEncryptor",
    "FieldEncryptor",
    "PartialReplicationError",
    "SaveContext",
    "StorageCancelledError",
    "StorageConnectionError",
    "StorageError",
    "StorageNotFoundError",
    "StoragePermissionError",
    "StoragePersistenceError",
    "StorageType",
    "StorageValidationError",
    "UnsupportedStorageTypeError",
]
