"""Pytest configuration and fixtures."""

import os
import uuid

os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite://")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from backup_storage.database import Base
from backup_storage.models import LocalStorage, MultiStorage, Storage, StorageType
from backup_storage.services.storage_repository import StorageRepository
from backup_storage.services.storage_service import StorageService
from backup_storage.storage.encryption import FernetFieldEncryptor


@pytest.fixture
def test_engine():
    """Create test database engine."""
    # Use in-memory SQLite for tests
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def test_db(test_engine):
    """Create a test database session."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def encryptor():
    return FernetFieldEncryptor("test-encryption-key")


@pytest.fixture
def workspace_id():
    return uuid.uuid4()


@pytest.fixture
def staging_dir(tmp_path):
    path = tmp_path / "staging"
    path.mkdir()
    return path


@pytest.fixture
def repository(test_db, staging_dir):
    return StorageRepository(test_db, temp_folder=str(staging_dir))


@pytest.fixture
def service(test_db, encryptor, repository):
    return StorageService(test_db, encryptor=encryptor, repository=repository)


def make_local_storage(workspace_id, path, name="local") -> Storage:
    """Build an unsaved local storage rooted at ``path``."""
    return Storage(
        workspace_id=workspace_id,
        type=StorageType.LOCAL,
        name=name,
        local_storage=LocalStorage(path=str(path)),
    )


def make_multi_storage(workspace_id, primary_id, secondary_id, name="multi") -> Storage:
    """Build an unsaved multi storage over two storage ids."""
    return Storage(
        workspace_id=workspace_id,
        type=StorageType.MULTI,
        name=name,
        multi_storage=MultiStorage(primary_id=primary_id, secondary_id=secondary_id),
    )
