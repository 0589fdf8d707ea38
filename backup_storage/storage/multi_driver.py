"""Multi-storage driver: replicate writes to two storages, fail over on reads."""

import logging
import os
import tempfile
import uuid
from typing import BinaryIO, Optional

import aiofiles

from backup_storage.storage.base import (
    BaseStorageDriver,
    PartialReplicationError,
    SaveContext,
    StorageConnectionError,
    StorageError,
    read_chunks,
)

logger = logging.getLogger(__name__)

NOT_INITIALIZED = "multi-storage not properly initialized"


class MultiStorageDriver(BaseStorageDriver):
    """Replicating driver over two resolved storages (legs).

    The legs are ``Storage`` facades attached to the MultiStorage row by
    ``StorageRepository.resolve_multi_storage``. Legs are never multi
    storages themselves.

    Semantics:
        save_file: stage input to a local file, write primary then secondary.
            Primary failure aborts before secondary is tried. Secondary
            failure after a primary success raises PartialReplicationError
            and leaves the primary copy in place.
        get_file: primary, then secondary if primary fails.
        delete_file: both legs; succeeds if at least one leg succeeds.
        test_connection: primary then secondary, stop at first failure.
    """

    def __init__(self, config, encryptor, temp_folder: Optional[str] = None):
        super().__init__(config, encryptor)
        self.primary = config.primary
        self.secondary = config.secondary
        self.temp_folder = temp_folder or config.temp_folder

    def _require_legs(self) -> None:
        if self.primary is None or self.secondary is None:
            raise StorageError(NOT_INITIALIZED)

    def _staging_file(self, file_id: uuid.UUID) -> str:
        """Create an empty, uniquely named staging file."""
        if not self.temp_folder:
            raise StorageError(f"{NOT_INITIALIZED}: no staging folder configured")

        try:
            os.makedirs(self.temp_folder, exist_ok=True)
            fd, path = tempfile.mkstemp(prefix=f"multi_{file_id}_", dir=self.temp_folder)
        except OSError as e:
            raise StorageError(f"failed to create temp file: {e}") from e
        os.close(fd)
        return path

    async def _stage(self, path: str, stream: BinaryIO) -> None:
        """Copy the input stream to the staging file."""
        try:
            async with aiofiles.open(path, "wb") as f:
                async for chunk in read_chunks(stream):
                    await f.write(chunk)
        except OSError as e:
            raise StorageError(f"failed to write to temp file: {e}") from e

    async def save_file(self, ctx: SaveContext, file_id: uuid.UUID, stream: BinaryIO) -> None:
        self._require_legs()
        ctx.raise_if_cancelled()

        # Cancellation is checked once; legs get a context that is never cancelled
        leg_ctx = SaveContext(workspace_id=ctx.workspace_id)

        staged_path = self._staging_file(file_id)
        try:
            await self._stage(staged_path, stream)

            with open(staged_path, "rb") as primary_stream:
                try:
                    await self.primary.save_file(leg_ctx, self.encryptor, file_id, primary_stream)
                except Exception as e:
                    raise StorageError(f"failed to save to primary storage: {e}") from e

            with open(staged_path, "rb") as secondary_stream:
                try:
                    await self.secondary.save_file(leg_ctx, self.encryptor, file_id, secondary_stream)
                except Exception as e:
                    logger.warning(
                        f"File {file_id} saved to primary storage {self.primary.id} "
                        f"but not to secondary storage {self.secondary.id}: {e}"
                    )
                    raise PartialReplicationError(
                        f"failed to save to secondary storage: {e}",
                        succeeded=["primary"],
                        failed=["secondary"],
                    ) from e
        finally:
            os.remove(staged_path)

    async def get_file(self, file_id: uuid.UUID) -> BinaryIO:
        self._require_legs()

        try:
            return await self.primary.get_file(self.encryptor, file_id)
        except Exception as primary_error:
            logger.warning(
                f"Primary storage {self.primary.id} failed to return file {file_id}, "
                f"falling back to secondary: {primary_error}"
            )
            try:
                return await self.secondary.get_file(self.encryptor, file_id)
            except Exception as secondary_error:
                raise StorageError(
                    f"failed to get file from both storages: "
                    f"primary: {primary_error}, secondary: {secondary_error}"
                ) from secondary_error

    async def delete_file(self, file_id: uuid.UUID) -> None:
        self._require_legs()

        primary_error = secondary_error = None

        try:
            await self.primary.delete_file(self.encryptor, file_id)
        except Exception as e:
            primary_error = e
            logger.warning(f"Failed to delete {file_id} from primary storage {self.primary.id}: {e}")

        try:
            await self.secondary.delete_file(self.encryptor, file_id)
        except Exception as e:
            secondary_error = e
            logger.warning(f"Failed to delete {file_id} from secondary storage {self.secondary.id}: {e}")

        if primary_error is not None and secondary_error is not None:
            raise StorageError(
                f"failed to delete from both storages: "
                f"primary: {primary_error}, secondary: {secondary_error}"
            )

    async def test_connection(self) -> None:
        self._require_legs()

        try:
            await self.primary.test_connection(self.encryptor)
        except Exception as e:
            raise StorageConnectionError(f"primary storage connection failed: {e}") from e

        try:
            await self.secondary.test_connection(self.encryptor)
        except Exception as e:
            raise PartialReplicationError(
                f"secondary storage connection failed: {e}",
                succeeded=["primary"],
                failed=["secondary"],
            ) from e
