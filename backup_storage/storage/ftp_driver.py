"""FTP / FTPS storage driver."""

import asyncio
import ftplib
import io
import logging
import posixpath
import ssl
import uuid
from typing import BinaryIO

from backup_storage.storage.base import (
    BaseStorageDriver,
    SaveContext,
    StorageConnectionError,
    StorageError,
)

CONNECT_TIMEOUT = 30


class FTPStorageDriver(BaseStorageDriver):
    """FTP storage driver built on ftplib.

    ftplib is blocking; every operation opens its own connection inside a
    worker thread.

    Configuration (FTPStorage row):
        host, port: Server address (port default 21)
        username, password: Credentials (password encrypted)
        use_ssl: Explicit FTPS (AUTH TLS) with protected data channel
        skip_tls_verify: Accept any server certificate
        path: Remote directory, created on save if missing
    """

    def __init__(self, config, encryptor):
        super().__init__(config, encryptor)
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.remote_dir = (config.path or "").rstrip("/")

    def _connect(self) -> ftplib.FTP:
        if self.config.use_ssl:
            context = ssl.create_default_context()
            if self.config.skip_tls_verify:
                context.check_hostname = False
                context.verify_mode = ssl.CERT_NONE
            ftp = ftplib.FTP_TLS(context=context, timeout=CONNECT_TIMEOUT)
        else:
            ftp = ftplib.FTP(timeout=CONNECT_TIMEOUT)

        ftp.connect(self.config.host, self.config.port or 21)
        ftp.login(self.config.username, self._decrypt(self.config.password))
        if isinstance(ftp, ftplib.FTP_TLS):
            ftp.prot_p()
        return ftp

    def _remote_path(self, file_id: uuid.UUID) -> str:
        if self.remote_dir:
            return posixpath.join(self.remote_dir, str(file_id))
        return str(file_id)

    def _ensure_remote_dir(self, ftp: ftplib.FTP) -> None:
        if not self.remote_dir:
            return

        current = "/" if self.remote_dir.startswith("/") else ""
        for part in self.remote_dir.strip("/").split("/"):
            current = posixpath.join(current, part) if current else part
            try:
                ftp.mkd(current)
            except ftplib.error_perm:
                # Already exists
                pass

    async def save_file(self, ctx: SaveContext, file_id: uuid.UUID, stream: BinaryIO) -> None:
        ctx.raise_if_cancelled()
        remote_path = self._remote_path(file_id)

        def _upload():
            with self._connect() as ftp:
                self._ensure_remote_dir(ftp)
                ftp.storbinary(f"STOR {remote_path}", stream)

        try:
            await asyncio.to_thread(_upload)
        except ftplib.all_errors as e:
            raise StorageError(f"Failed to upload {remote_path} to {self.config.host}: {e}") from e

    async def get_file(self, file_id: uuid.UUID) -> BinaryIO:
        remote_path = self._remote_path(file_id)

        def _download() -> io.BytesIO:
            buffer = io.BytesIO()
            with self._connect() as ftp:
                ftp.retrbinary(f"RETR {remote_path}", buffer.write)
            buffer.seek(0)
            return buffer

        try:
            return await asyncio.to_thread(_download)
        except ftplib.error_perm as e:
            if str(e).startswith("550"):
                raise FileNotFoundError(f"File not found: {file_id}")
            raise StorageError(f"Failed to download {remote_path}: {e}") from e
        except ftplib.all_errors as e:
            raise StorageError(f"Failed to download {remote_path}: {e}") from e

    async def delete_file(self, file_id: uuid.UUID) -> None:
        """Delete the remote file. A missing file is not an error."""
        remote_path = self._remote_path(file_id)

        def _delete():
            with self._connect() as ftp:
                try:
                    ftp.delete(remote_path)
                except ftplib.error_perm as e:
                    if not str(e).startswith("550"):
                        raise

        try:
            await asyncio.to_thread(_delete)
        except ftplib.all_errors as e:
            raise StorageError(f"Failed to delete {remote_path}: {e}") from e

    async def test_connection(self) -> None:
        def _check():
            with self._connect() as ftp:
                self._ensure_remote_dir(ftp)
                ftp.voidcmd("NOOP")

        try:
            await asyncio.to_thread(_check)
        except ftplib.all_errors as e:
            raise StorageConnectionError(
                f"Failed to connect to FTP server {self.config.host}:{self.config.port}: {e}"
            ) from e
