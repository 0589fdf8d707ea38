"""Tests for StorageRepository."""

import uuid

import pytest

from conftest import make_local_storage, make_multi_storage

from backup_storage.models import FTPStorage, LocalStorage, Storage, StorageType
from backup_storage.storage.base import (
    StorageNotFoundError,
    StorageValidationError,
    UnsupportedStorageTypeError,
)


class TestSave:
    """Tests for atomic parent plus variant saves."""

    def test_create_assigns_id_and_links_variant(self, repository, test_db, workspace_id, tmp_path):
        storage = repository.save(make_local_storage(workspace_id, tmp_path))

        assert storage.id is not None
        row = test_db.query(LocalStorage).one()
        assert row.storage_id == storage.id
        assert row.path == str(tmp_path)

    def test_update_keeps_single_variant_row(self, repository, test_db, workspace_id, tmp_path):
        storage = repository.save(make_local_storage(workspace_id, tmp_path))
        storage.local_storage.path = str(tmp_path / "other")
        repository.save(storage)

        assert test_db.query(Storage).count() == 1
        assert test_db.query(LocalStorage).one().path == str(tmp_path / "other")

    def test_type_change_removes_previous_variant(self, repository, test_db, workspace_id, tmp_path):
        storage = repository.save(make_local_storage(workspace_id, tmp_path))

        storage.type = StorageType.FTP
        storage.ftp_storage = FTPStorage(host="ftp.local", port=21, username="u", password="p")
        repository.save(storage)

        assert test_db.query(LocalStorage).count() == 0
        assert test_db.query(FTPStorage).one().storage_id == storage.id
        assert repository.find_by_id(storage.id).local_storage is None

    def test_mismatched_variant_rejected(self, repository, test_db, workspace_id, tmp_path):
        storage = make_local_storage(workspace_id, tmp_path)
        storage.type = StorageType.S3

        with pytest.raises(UnsupportedStorageTypeError):
            repository.save(storage)

        assert test_db.query(Storage).count() == 0


class TestFind:
    """Tests for loading storages."""

    def test_find_by_id_loads_variant(self, repository, workspace_id, tmp_path):
        saved = repository.save(make_local_storage(workspace_id, tmp_path))

        found = repository.find_by_id(saved.id)

        assert found.type == StorageType.LOCAL
        assert found.get_variant().path == str(tmp_path)

    def test_find_by_id_missing(self, repository):
        with pytest.raises(StorageNotFoundError):
            repository.find_by_id(uuid.uuid4())

    def test_find_by_workspace_orders_by_name(self, repository, workspace_id, tmp_path):
        repository.save(make_local_storage(workspace_id, tmp_path / "b", name="beta"))
        repository.save(make_local_storage(workspace_id, tmp_path / "a", name="alpha"))
        repository.save(make_local_storage(uuid.uuid4(), tmp_path / "c", name="other workspace"))

        storages = repository.find_by_workspace_id(workspace_id)

        assert [s.name for s in storages] == ["alpha", "beta"]

    def test_find_by_workspace_empty(self, repository):
        assert repository.find_by_workspace_id(uuid.uuid4()) == []


class TestResolveMultiStorage:
    """Tests for attaching multi-storage legs."""

    def test_resolves_legs(self, repository, workspace_id, tmp_path, staging_dir):
        x = repository.save(make_local_storage(workspace_id, tmp_path / "x", name="x"))
        y = repository.save(make_local_storage(workspace_id, tmp_path / "y", name="y"))
        z = repository.save(make_multi_storage(workspace_id, x.id, y.id))

        resolved = repository.resolve_multi_storage(repository.find_by_id(z.id))

        multi = resolved.multi_storage
        assert multi.primary.id == x.id
        assert multi.secondary.id == y.id
        assert multi.temp_folder == str(staging_dir)

    def test_non_multi_untouched(self, repository, workspace_id, tmp_path):
        storage = repository.save(make_local_storage(workspace_id, tmp_path))

        assert repository.resolve_multi_storage(storage) is storage

    def test_missing_secondary(self, repository, workspace_id, tmp_path):
        x = repository.save(make_local_storage(workspace_id, tmp_path / "x", name="x"))
        z = repository.save(make_multi_storage(workspace_id, x.id, uuid.uuid4()))

        with pytest.raises(StorageNotFoundError, match="failed to load secondary storage"):
            repository.resolve_multi_storage(repository.find_by_id(z.id))

    def test_missing_leg_id(self, repository, workspace_id):
        storage = make_multi_storage(workspace_id, uuid.uuid4(), None)

        with pytest.raises(StorageValidationError):
            repository.resolve_multi_storage(storage)


class TestDelete:
    """Tests for deleting storages."""

    def test_delete_removes_parent_and_variant(self, repository, test_db, workspace_id, tmp_path):
        storage = repository.save(make_local_storage(workspace_id, tmp_path))

        repository.delete(storage)

        assert test_db.query(Storage).count() == 0
        assert test_db.query(LocalStorage).count() == 0

    def test_delete_multi_keeps_legs(self, repository, test_db, workspace_id, tmp_path):
        x = repository.save(make_local_storage(workspace_id, tmp_path / "x", name="x"))
        y = repository.save(make_local_storage(workspace_id, tmp_path / "y", name="y"))
        z = repository.save(make_multi_storage(workspace_id, x.id, y.id))

        repository.delete(z)

        assert {s.id for s in test_db.query(Storage).all()} == {x.id, y.id}
