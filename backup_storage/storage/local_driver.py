"""Local filesystem storage driver."""

import logging
import os
import tempfile
import uuid
from pathlib import Path
from typing import BinaryIO

import aiofiles

from backup_storage.config import settings
from backup_storage.storage.base import (
    BaseStorageDriver,
    SaveContext,
    StorageConnectionError,
    StorageError,
    read_chunks,
)


class LocalStorageDriver(BaseStorageDriver):
    """Local filesystem storage driver.

    Configuration:
        path: Absolute path to storage directory (default: <data_folder>/backups)

    Example:
        >>> driver = LocalStorageDriver(LocalStorage(path="/data/backups"), encryptor)
        >>> await driver.save_file(SaveContext(), file_id, stream)
    """

    def __init__(self, config, encryptor):
        super().__init__(config, encryptor)
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.base_path = Path(config.path or os.path.join(settings.data_folder, "backups"))

        # Ensure base_path is absolute for security
        if not self.base_path.is_absolute():
            self.base_path = self.base_path.resolve()

    def _validate_path(self, file_path: str) -> Path:
        """Validate path is within base_path (prevent directory traversal).

        Args:
            file_path: Relative file path

        Returns:
            Absolute Path object

        Raises:
            StorageError: If path tries to escape base_path
        """
        full_path = (self.base_path / file_path).resolve()

        try:
            full_path.relative_to(self.base_path.resolve())
        except ValueError:
            raise StorageError(f"Path {file_path} attempts to escape base directory")

        return full_path

    async def save_file(self, ctx: SaveContext, file_id: uuid.UUID, stream: BinaryIO) -> None:
        """Write stream to <base_path>/<file_id>.

        Content goes to a uniquely named ``.part`` file first and is renamed
        into place, so a failed write never leaves a truncated backup under
        the final name and concurrent saves of one id do not collide.
        """
        ctx.raise_if_cancelled()
        full_path = self._validate_path(str(file_id))

        try:
            full_path.parent.mkdir(parents=True, exist_ok=True)
            fd, part_path = tempfile.mkstemp(
                prefix=f"{file_id}.", suffix=".part", dir=full_path.parent
            )
        except OSError as e:
            raise StorageError(f"failed to save file {file_id} to {self.base_path}: {e}") from e
        os.close(fd)

        try:
            async with aiofiles.open(part_path, "wb") as f:
                async for chunk in read_chunks(stream):
                    await f.write(chunk)
            os.replace(part_path, full_path)
        except OSError as e:
            raise StorageError(f"failed to save file {file_id} to {self.base_path}: {e}") from e
        finally:
            if os.path.exists(part_path):
                os.remove(part_path)

        self.logger.debug(f"Saved file {file_id} to {full_path}")

    async def get_file(self, file_id: uuid.UUID) -> BinaryIO:
        full_path = self._validate_path(str(file_id))

        if not full_path.exists():
            raise FileNotFoundError(f"File not found: {file_id}")

        return open(full_path, "rb")

    async def delete_file(self, file_id: uuid.UUID) -> None:
        """Remove the file. A missing file is not an error."""
        full_path = self._validate_path(str(file_id))

        try:
            full_path.unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            raise StorageError(f"failed to delete file {file_id}: {e}") from e

    async def test_connection(self) -> None:
        """Check base path exists (or can be created) and is writable."""
        marker = self.base_path / f".write-check-{uuid.uuid4()}"
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(marker, "wb") as f:
                await f.write(b"ok")
            marker.unlink()
        except OSError as e:
            raise StorageConnectionError(f"local storage {self.base_path} is not writable: {e}") from e
