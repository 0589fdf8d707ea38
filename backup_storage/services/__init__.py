"""Business logic services."""

from backup_storage.services.storage_repository import StorageRepository
from backup_storage.services.storage_service import StorageService

__all__ = ["StorageRepository", "StorageService"]
