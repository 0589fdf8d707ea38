"""NAS storage driver (SMB2/3 shares)."""

import asyncio
import errno
import io
import logging
import shutil
import uuid
from typing import BinaryIO

import smbclient
from smbprotocol.exceptions import SMBException

from backup_storage.storage.base import (
    BaseStorageDriver,
    SaveContext,
    StorageConnectionError,
    StorageError,
)


class NASStorageDriver(BaseStorageDriver):
    """SMB share driver built on smbprotocol's ``smbclient`` API.

    Configuration (NASStorage row):
        host, port: Server address (port default 445)
        share: Share name
        username, password, domain: Credentials (password encrypted)
        use_ssl: Require SMB3 encryption
        path: Directory inside the share
    """

    def __init__(self, config, encryptor):
        super().__init__(config, encryptor)
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.port = config.port or 445

    def _register_session(self) -> None:
        username = self.config.username
        if self.config.domain:
            username = f"{self.config.domain}\\{username}"

        smbclient.register_session(
            self.config.host,
            username=username,
            password=self._decrypt(self.config.password),
            port=self.port,
            encrypt=bool(self.config.use_ssl),
        )

    def _directory(self) -> str:
        parts = [f"\\\\{self.config.host}", self.config.share]
        sub_path = (self.config.path or "").strip("/\\")
        if sub_path:
            parts.append(sub_path.replace("/", "\\"))
        return "\\".join(parts)

    def _file_path(self, file_id: uuid.UUID) -> str:
        return f"{self._directory()}\\{file_id}"

    async def save_file(self, ctx: SaveContext, file_id: uuid.UUID, stream: BinaryIO) -> None:
        ctx.raise_if_cancelled()

        def _upload():
            self._register_session()
            smbclient.makedirs(self._directory(), exist_ok=True, port=self.port)
            with smbclient.open_file(self._file_path(file_id), mode="wb", port=self.port) as remote:
                shutil.copyfileobj(stream, remote)

        try:
            await asyncio.to_thread(_upload)
        except (SMBException, OSError) as e:
            raise StorageError(f"Failed to save {file_id} to NAS {self.config.host}: {e}") from e

    async def get_file(self, file_id: uuid.UUID) -> BinaryIO:
        def _download() -> bytes:
            self._register_session()
            with smbclient.open_file(self._file_path(file_id), mode="rb", port=self.port) as remote:
                return remote.read()

        try:
            return io.BytesIO(await asyncio.to_thread(_download))
        except OSError as e:
            if e.errno == errno.ENOENT:
                raise FileNotFoundError(f"File not found: {file_id}")
            raise StorageError(f"Failed to read {file_id} from NAS: {e}") from e
        except SMBException as e:
            raise StorageError(f"Failed to read {file_id} from NAS: {e}") from e

    async def delete_file(self, file_id: uuid.UUID) -> None:
        """Delete the file. A missing file is not an error."""

        def _delete():
            self._register_session()
            try:
                smbclient.remove(self._file_path(file_id), port=self.port)
            except OSError as e:
                if e.errno != errno.ENOENT:
                    raise

        try:
            await asyncio.to_thread(_delete)
        except (SMBException, OSError) as e:
            raise StorageError(f"Failed to delete {file_id} from NAS: {e}") from e

    async def test_connection(self) -> None:
        def _check():
            self._register_session()
            smbclient.makedirs(self._directory(), exist_ok=True, port=self.port)
            smbclient.listdir(self._directory(), port=self.port)

        try:
            await asyncio.to_thread(_check)
        except (SMBException, OSError, ValueError) as e:
            raise StorageConnectionError(
                f"Failed to connect to NAS {self.config.host}:{self.port}/{self.config.share}: {e}"
            ) from e
