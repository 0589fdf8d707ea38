"""S3-compatible storage driver (AWS S3, Cloudflare R2, MinIO, etc)."""

import io
import logging
import uuid
from typing import BinaryIO

import aioboto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from backup_storage.storage.base import (
    BaseStorageDriver,
    SaveContext,
    StorageConnectionError,
    StorageError,
)


class S3StorageDriver(BaseStorageDriver):
    """S3-compatible storage driver.

    Supports:
    - AWS S3
    - Cloudflare R2
    - MinIO
    - Any S3-compatible API

    Configuration (S3Storage row):
        s3_access_key: Access key (encrypted)
        s3_secret_key: Secret key (encrypted)
        s3_bucket: Bucket name
        s3_region: AWS region (default: us-east-1)
        s3_endpoint: Custom endpoint URL (for R2, MinIO, etc)
        s3_prefix: Key prefix within bucket (optional)
        s3_use_virtual_hosted_style: Virtual-hosted addressing for custom endpoints
    """

    def __init__(self, config, encryptor):
        super().__init__(config, encryptor)
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.bucket_name = config.s3_bucket
        self.base_path = (config.s3_prefix or "").strip("/")
        self.session = aioboto3.Session()

    def _client_config(self) -> dict:
        """Build client kwargs. Credentials are decrypted per call."""
        s3_config = {
            "aws_access_key_id": self._decrypt(self.config.s3_access_key),
            "aws_secret_access_key": self._decrypt(self.config.s3_secret_key),
            "region_name": self.config.s3_region or "us-east-1",
        }

        # Support custom endpoint (Cloudflare R2, MinIO, etc)
        if self.config.s3_endpoint:
            s3_config["endpoint_url"] = self.config.s3_endpoint
            addressing_style = "virtual" if self.config.s3_use_virtual_hosted_style else "path"
            s3_config["config"] = Config(s3={"addressing_style": addressing_style})

        return s3_config

    def _get_full_key(self, file_id: uuid.UUID) -> str:
        """Get full S3 key with prefix."""
        if self.base_path:
            return f"{self.base_path}/{file_id}"
        return str(file_id)

    async def save_file(self, ctx: SaveContext, file_id: uuid.UUID, stream: BinaryIO) -> None:
        ctx.raise_if_cancelled()
        key = self._get_full_key(file_id)

        try:
            async with self.session.client("s3", **self._client_config()) as s3:
                await s3.upload_fileobj(stream, self.bucket_name, key)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to upload file: {e}") from e

        self.logger.debug(f"Uploaded s3://{self.bucket_name}/{key}")

    async def get_file(self, file_id: uuid.UUID) -> BinaryIO:
        key = self._get_full_key(file_id)

        try:
            async with self.session.client("s3", **self._client_config()) as s3:
                response = await s3.get_object(Bucket=self.bucket_name, Key=key)
                async with response["Body"] as stream:
                    return io.BytesIO(await stream.read())

        except ClientError as e:
            if e.response["Error"]["Code"] in ("NoSuchKey", "404"):
                raise FileNotFoundError(f"File not found: {file_id}")
            raise StorageError(f"Failed to download file: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"Failed to download file: {e}") from e

    async def delete_file(self, file_id: uuid.UUID) -> None:
        key = self._get_full_key(file_id)

        try:
            async with self.session.client("s3", **self._client_config()) as s3:
                await s3.delete_object(Bucket=self.bucket_name, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to delete file: {e}") from e

    async def test_connection(self) -> None:
        """Test S3 connection by checking if bucket exists."""
        try:
            async with self.session.client("s3", **self._client_config()) as s3:
                await s3.head_bucket(Bucket=self.bucket_name)

        except ClientError as e:
            error_code = e.response["Error"]["Code"]
            if error_code in ("404", "NoSuchBucket"):
                raise StorageConnectionError(f"Bucket not found: {self.bucket_name}") from e
            elif error_code == "403":
                raise StorageConnectionError(f"Access denied to bucket: {self.bucket_name}") from e
            raise StorageConnectionError(f"Failed to reach bucket {self.bucket_name}: {e}") from e

        except BotoCoreError as e:
            raise StorageConnectionError(f"Failed to reach bucket {self.bucket_name}: {e}") from e
