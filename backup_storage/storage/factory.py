"""Storage driver factory."""

from typing import Dict, Type

from backup_storage.storage.azure_blob_driver import AzureBlobStorageDriver
from backup_storage.storage.base import BaseStorageDriver, UnsupportedStorageTypeError
from backup_storage.storage.encryption import FieldEncryptor
from backup_storage.storage.ftp_driver import FTPStorageDriver
from backup_storage.storage.google_drive_driver import GoogleDriveStorageDriver
from backup_storage.storage.local_driver import LocalStorageDriver
from backup_storage.storage.multi_driver import MultiStorageDriver
from backup_storage.storage.nas_driver import NASStorageDriver
from backup_storage.storage.s3_driver import S3StorageDriver
from backup_storage.storage.types import StorageType

DRIVERS: Dict[StorageType, Type[BaseStorageDriver]] = {
    StorageType.LOCAL: LocalStorageDriver,
    StorageType.S3: S3StorageDriver,
    StorageType.GOOGLE_DRIVE: GoogleDriveStorageDriver,
    StorageType.NAS: NASStorageDriver,
    StorageType.AZURE_BLOB: AzureBlobStorageDriver,
    StorageType.FTP: FTPStorageDriver,
    StorageType.MULTI: MultiStorageDriver,
}


def get_storage_driver(storage, encryptor: FieldEncryptor) -> BaseStorageDriver:
    """Get storage driver instance for a storage.

    Args:
        storage: Storage row with its variant loaded
        encryptor: Field encryptor for secret fields

    Returns:
        Configured storage driver instance

    Raises:
        UnsupportedStorageTypeError: If the type is unknown or its variant is missing

    Example:
        >>> driver = get_storage_driver(storage, FernetFieldEncryptor())
        >>> await driver.test_connection()
    """
    variant = storage.get_variant()

    driver_class = DRIVERS.get(StorageType(storage.type))
    if driver_class is None:
        raise UnsupportedStorageTypeError(f"Unsupported storage type: {storage.type}")

    return driver_class(variant, encryptor)
