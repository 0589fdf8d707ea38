"""Azure Blob Storage driver."""

import asyncio
import io
import logging
import uuid
from typing import BinaryIO

from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.storage.blob import BlobServiceClient

from backup_storage.storage.base import (
    BaseStorageDriver,
    SaveContext,
    StorageConnectionError,
    StorageError,
)
from backup_storage.storage.types import AUTH_METHOD_CONNECTION_STRING


class AzureBlobStorageDriver(BaseStorageDriver):
    """Azure Blob Storage driver.

    Uses the blocking azure-storage-blob SDK, run in a worker thread.

    Configuration (AzureBlobStorage row):
        auth_method: ACCOUNT_KEY or CONNECTION_STRING
        connection_string: Full connection string (encrypted)
        account_name / account_key: Account credentials (key encrypted)
        container_name: Blob container
        endpoint: Custom account URL (optional)
        prefix: Blob name prefix (optional)
    """

    def __init__(self, config, encryptor):
        super().__init__(config, encryptor)
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.container = config.container_name
        self.prefix = (config.prefix or "").strip("/")

    def _service_client(self) -> BlobServiceClient:
        if self.config.auth_method == AUTH_METHOD_CONNECTION_STRING:
            return BlobServiceClient.from_connection_string(
                self._decrypt(self.config.connection_string)
            )

        account_url = self.config.endpoint or f"https://{self.config.account_name}.blob.core.windows.net"
        return BlobServiceClient(
            account_url=account_url,
            credential={
                "account_name": self.config.account_name,
                "account_key": self._decrypt(self.config.account_key),
            },
        )

    def _blob_name(self, file_id: uuid.UUID) -> str:
        if self.prefix:
            return f"{self.prefix}/{file_id}"
        return str(file_id)

    def _blob_client(self, file_id: uuid.UUID):
        return self._service_client().get_blob_client(
            container=self.container, blob=self._blob_name(file_id)
        )

    async def save_file(self, ctx: SaveContext, file_id: uuid.UUID, stream: BinaryIO) -> None:
        ctx.raise_if_cancelled()

        def _upload():
            self._blob_client(file_id).upload_blob(stream, overwrite=True)

        try:
            await asyncio.to_thread(_upload)
        except AzureError as e:
            raise StorageError(f"Failed to upload blob {self._blob_name(file_id)}: {e}") from e

    async def get_file(self, file_id: uuid.UUID) -> BinaryIO:
        def _download() -> bytes:
            return self._blob_client(file_id).download_blob().readall()

        try:
            return io.BytesIO(await asyncio.to_thread(_download))
        except ResourceNotFoundError:
            raise FileNotFoundError(f"File not found: {file_id}")
        except AzureError as e:
            raise StorageError(f"Failed to download blob {self._blob_name(file_id)}: {e}") from e

    async def delete_file(self, file_id: uuid.UUID) -> None:
        """Delete the blob. A missing blob is not an error."""

        def _delete():
            try:
                self._blob_client(file_id).delete_blob()
            except ResourceNotFoundError:
                self.logger.debug(f"Blob {self._blob_name(file_id)} already absent")

        try:
            await asyncio.to_thread(_delete)
        except AzureError as e:
            raise StorageError(f"Failed to delete blob {self._blob_name(file_id)}: {e}") from e

    async def test_connection(self) -> None:
        def _check():
            self._service_client().get_container_client(self.container).get_container_properties()

        try:
            await asyncio.to_thread(_check)
        except ResourceNotFoundError as e:
            raise StorageConnectionError(f"Container not found: {self.container}") from e
        except (AzureError, ValueError) as e:
            raise StorageConnectionError(f"Failed to reach container {self.container}: {e}") from e
