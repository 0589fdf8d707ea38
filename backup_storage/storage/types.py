"""Storage type enum."""

import enum


class StorageType(str, enum.Enum):
    """Backend kinds a storage can be configured with."""

    LOCAL = "LOCAL"
    S3 = "S3"
    GOOGLE_DRIVE = "GOOGLE_DRIVE"
    NAS = "NAS"
    AZURE_BLOB = "AZURE_BLOB"
    FTP = "FTP"
    MULTI = "MULTI"


# Relationship attribute on Storage holding the variant row for each type
VARIANT_SLOTS = {
    StorageType.LOCAL: "local_storage",
    StorageType.S3: "s3_storage",
    StorageType.GOOGLE_DRIVE: "google_drive_storage",
    StorageType.NAS: "nas_storage",
    StorageType.AZURE_BLOB: "azure_blob_storage",
    StorageType.FTP: "ftp_storage",
    StorageType.MULTI: "multi_storage",
}

# Azure Blob authentication methods
AUTH_METHOD_ACCOUNT_KEY = "ACCOUNT_KEY"
AUTH_METHOD_CONNECTION_STRING = "CONNECTION_STRING"
