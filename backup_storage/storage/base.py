"""Base storage driver interface."""

import asyncio
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import BinaryIO, Optional, Sequence

from backup_storage.storage.encryption import FieldEncryptor

CHUNK_SIZE = 1024 * 1024


@dataclass
class SaveContext:
    """Per-call context for file writes.

    Cancellation is checked once, before any data is staged or sent.
    A cancellation requested mid-transfer is not honored.
    """

    workspace_id: Optional[uuid.UUID] = None
    cancel_event: asyncio.Event = field(default_factory=asyncio.Event)

    def cancel(self) -> None:
        self.cancel_event.set()

    def raise_if_cancelled(self) -> None:
        if self.cancel_event.is_set():
            raise StorageCancelledError("save operation was cancelled")


class BaseStorageDriver(ABC):
    """Base class for storage drivers.

    All storage drivers must implement this interface to provide
    unified access to different storage backends (S3, Azure, FTP, Local, etc).
    Drivers receive the persisted variant row and an encryptor; secret
    fields are decrypted on demand and never written back.
    """

    def __init__(self, config, encryptor: FieldEncryptor):
        """Initialize storage driver with configuration.

        Args:
            config: Variant model row with provider-specific settings
            encryptor: Field encryptor used to recover plaintext secrets
        """
        self.config = config
        self.encryptor = encryptor

    def _decrypt(self, value: Optional[str]) -> str:
        """Return plaintext for a possibly encrypted secret field."""
        if not value:
            return ""
        try:
            return self.encryptor.decrypt(value)
        except ValueError as e:
            raise StorageError(f"failed to decrypt credentials: {e}") from e

    @abstractmethod
    async def save_file(
        self, ctx: SaveContext, file_id: uuid.UUID, stream: BinaryIO
    ) -> None:
        """Store content addressed by file_id.

        Args:
            ctx: Save context (cancellation)
            file_id: File identifier
            stream: Readable binary stream, possibly non-seekable

        Raises:
            StorageError: If upload fails
        """
        pass

    @abstractmethod
    async def get_file(self, file_id: uuid.UUID) -> BinaryIO:
        """Open stored content for reading.

        Args:
            file_id: File identifier

        Returns:
            Readable binary stream; caller closes it

        Raises:
            FileNotFoundError: If file doesn't exist
            StorageError: If download fails
        """
        pass

    @abstractmethod
    async def delete_file(self, file_id: uuid.UUID) -> None:
        """Delete stored content.

        Raises:
            StorageError: If delete fails
        """
        pass

    @abstractmethod
    async def test_connection(self) -> None:
        """Check the backend is reachable and usable.

        Raises:
            StorageConnectionError: If the check fails
        """
        pass


async def read_chunks(stream: BinaryIO, chunk_size: int = CHUNK_SIZE):
    """Yield chunks from a blocking binary stream until EOF.

    Reads run in a worker thread so a slow source does not block the loop.
    """
    while True:
        chunk = await asyncio.to_thread(stream.read, chunk_size)
        if not chunk:
            break
        yield chunk


class StorageError(Exception):
    """Base exception for storage operations."""

    pass


class StorageValidationError(StorageError):
    """Missing or contradictory configuration, detected without I/O."""

    pass


class StorageConnectionError(StorageError):
    """Exception for connection errors."""

    pass


class StoragePermissionError(StorageError):
    """Exception for permission errors."""

    pass


class StoragePersistenceError(StorageError):
    """Transactional read or write of storage rows failed."""

    pass


class StorageNotFoundError(StorageError):
    """Referenced storage record does not exist."""

    pass


class UnsupportedStorageTypeError(StorageError):
    """Storage type is unknown or does not match the populated variant."""

    pass


class StorageCancelledError(StorageError):
    """Operation was cancelled before it started."""

    pass


class PartialReplicationError(StorageError):
    """One leg of a multi-storage operation failed while the other succeeded.

    Attributes:
        succeeded: Names of legs that completed
        failed: Names of legs that failed
    """

    def __init__(
        self,
        message: str,
        succeeded: Sequence[str] = (),
        failed: Sequence[str] = (),
    ):
        super().__init__(message)
        self.succeeded = list(succeeded)
        self.failed = list(failed)
