"""Tests for StorageService."""

import io
import shutil
import uuid

import pytest

from conftest import make_local_storage, make_multi_storage

from backup_storage.models import FTPStorage, LocalStorage, S3Storage, Storage, StorageType
from backup_storage.storage.base import (
    PartialReplicationError,
    SaveContext,
    StorageCancelledError,
    StorageConnectionError,
    StorageError,
    StorageNotFoundError,
    StoragePermissionError,
    StorageValidationError,
)
from backup_storage.storage.encryption import FernetFieldEncryptor


def make_ftp_storage(workspace_id, password="ftp-secret", storage_id=None, name="ftp"):
    return Storage(
        id=storage_id,
        workspace_id=workspace_id,
        type=StorageType.FTP,
        name=name,
        ftp_storage=FTPStorage(host="ftp.local", port=21, username="backup", password=password),
    )


class TestSaveStorage:
    """Tests for the update -> encrypt -> validate -> persist sequence."""

    def test_create_encrypts_secrets(self, service, test_db, encryptor, workspace_id):
        saved = service.save_storage(workspace_id, make_ftp_storage(workspace_id))

        row = test_db.query(FTPStorage).one()
        assert row.storage_id == saved.id
        assert row.password.startswith("enc:")
        assert encryptor.decrypt(row.password) == "ftp-secret"

    def test_create_sets_workspace(self, service, workspace_id, tmp_path):
        saved = service.save_storage(workspace_id, make_local_storage(None, tmp_path))

        assert saved.workspace_id == workspace_id

    def test_encrypt_runs_before_validate(self, service, encryptor, workspace_id, monkeypatch):
        seen = []
        original = FTPStorage.validate

        def spy(self, enc):
            seen.append(encryptor.is_encrypted(self.password))
            return original(self, enc)

        monkeypatch.setattr(FTPStorage, "validate", spy)

        service.save_storage(workspace_id, make_ftp_storage(workspace_id))

        assert seen == [True]

    def test_invalid_configuration_not_persisted(self, service, test_db, workspace_id):
        storage = make_ftp_storage(workspace_id)
        storage.ftp_storage.host = ""

        with pytest.raises(StorageValidationError, match="host is required"):
            service.save_storage(workspace_id, storage)

        assert test_db.query(Storage).count() == 0

    def test_update_keeps_secret_when_blank(self, service, test_db, encryptor, workspace_id):
        saved = service.save_storage(workspace_id, make_ftp_storage(workspace_id))

        service.save_storage(
            workspace_id, make_ftp_storage(workspace_id, password="", storage_id=saved.id, name="renamed")
        )

        row = test_db.query(FTPStorage).one()
        assert encryptor.decrypt(row.password) == "ftp-secret"
        assert test_db.query(Storage).one().name == "renamed"

    def test_update_replaces_secret(self, service, test_db, encryptor, workspace_id):
        saved = service.save_storage(workspace_id, make_ftp_storage(workspace_id))

        service.save_storage(
            workspace_id, make_ftp_storage(workspace_id, password="rotated", storage_id=saved.id)
        )

        assert encryptor.decrypt(test_db.query(FTPStorage).one().password) == "rotated"

    def test_update_with_omitted_flags_keeps_stored_values(self, service, test_db, workspace_id):
        storage = make_ftp_storage(workspace_id)
        storage.ftp_storage.use_ssl = True
        saved = service.save_storage(workspace_id, storage)

        incoming = make_ftp_storage(workspace_id, password="", storage_id=saved.id)
        assert incoming.ftp_storage.use_ssl is None
        service.save_storage(workspace_id, incoming)

        row = test_db.query(FTPStorage).one()
        assert row.use_ssl is True
        assert row.skip_tls_verify is False
        assert row.port == 21

    def test_update_changes_type(self, service, test_db, workspace_id, tmp_path):
        saved = service.save_storage(workspace_id, make_ftp_storage(workspace_id))

        incoming = make_local_storage(workspace_id, tmp_path)
        incoming.id = saved.id
        service.save_storage(workspace_id, incoming)

        assert test_db.query(FTPStorage).count() == 0
        assert test_db.query(LocalStorage).one().storage_id == saved.id
        assert test_db.query(Storage).one().type == StorageType.LOCAL

    def test_update_from_other_workspace_rejected(self, service, test_db, encryptor, workspace_id):
        saved = service.save_storage(workspace_id, make_ftp_storage(workspace_id))
        other_workspace = uuid.uuid4()

        with pytest.raises(StoragePermissionError):
            service.save_storage(
                other_workspace, make_ftp_storage(other_workspace, password="x", storage_id=saved.id)
            )

        assert encryptor.decrypt(test_db.query(FTPStorage).one().password) == "ftp-secret"

    def test_update_missing_storage(self, service, workspace_id):
        with pytest.raises(StorageNotFoundError):
            service.save_storage(workspace_id, make_ftp_storage(workspace_id, storage_id=uuid.uuid4()))


class TestMultiStorageReferences:
    """Tests for multi-storage leg validation."""

    @pytest.fixture
    def legs(self, service, workspace_id, tmp_path):
        x = service.save_storage(workspace_id, make_local_storage(workspace_id, tmp_path / "x", name="x"))
        y = service.save_storage(workspace_id, make_local_storage(workspace_id, tmp_path / "y", name="y"))
        return x, y

    def test_valid_multi_storage(self, service, legs, workspace_id):
        x, y = legs

        saved = service.save_storage(workspace_id, make_multi_storage(workspace_id, x.id, y.id))

        assert saved.multi_storage.primary_id == x.id
        assert saved.multi_storage.secondary_id == y.id

    def test_same_leg_twice(self, service, legs, workspace_id):
        x, _ = legs

        with pytest.raises(StorageValidationError, match="must be different"):
            service.save_storage(workspace_id, make_multi_storage(workspace_id, x.id, x.id))

    def test_nested_multi_rejected(self, service, test_db, legs, workspace_id, tmp_path):
        x, y = legs
        z = service.save_storage(workspace_id, make_multi_storage(workspace_id, x.id, y.id, name="z"))

        with pytest.raises(StorageValidationError, match="cannot be a multi-storage"):
            service.save_storage(workspace_id, make_multi_storage(workspace_id, z.id, y.id, name="nested"))

        assert test_db.query(Storage).count() == 3

    def test_leg_in_other_workspace(self, service, legs, workspace_id, tmp_path):
        x, _ = legs
        other_workspace = uuid.uuid4()
        foreign = service.save_storage(other_workspace, make_local_storage(other_workspace, tmp_path / "f"))

        with pytest.raises(StorageValidationError, match="same workspace"):
            service.save_storage(workspace_id, make_multi_storage(workspace_id, x.id, foreign.id))

    def test_missing_leg(self, service, legs, workspace_id):
        x, _ = legs

        with pytest.raises(StorageNotFoundError, match="secondary storage not found"):
            service.save_storage(workspace_id, make_multi_storage(workspace_id, x.id, uuid.uuid4()))


class TestReads:
    """Tests for display reads and deletes."""

    def test_get_storage_hides_secrets(self, service, test_db, workspace_id):
        saved = service.save_storage(workspace_id, make_ftp_storage(workspace_id))

        shown = service.get_storage(saved.id)

        assert shown.ftp_storage.password == ""
        assert shown.ftp_storage.host == "ftp.local"
        assert test_db.query(FTPStorage).one().password.startswith("enc:")

    def test_get_storages_hides_all(self, service, workspace_id):
        service.save_storage(workspace_id, make_ftp_storage(workspace_id, name="a"))
        service.save_storage(workspace_id, make_ftp_storage(workspace_id, name="b"))

        shown = service.get_storages(workspace_id)

        assert [s.name for s in shown] == ["a", "b"]
        assert all(s.ftp_storage.password == "" for s in shown)

    def test_get_storage_by_id_keeps_secrets(self, service, workspace_id):
        saved = service.save_storage(workspace_id, make_ftp_storage(workspace_id))

        storage = service.get_storage_by_id(saved.id)

        assert storage.ftp_storage.password.startswith("enc:")

    def test_delete_storage(self, service, test_db, workspace_id):
        saved = service.save_storage(workspace_id, make_ftp_storage(workspace_id))

        service.delete_storage(saved.id)

        assert test_db.query(Storage).count() == 0
        assert test_db.query(FTPStorage).count() == 0

    def test_workspace_deletion_removes_all(self, service, test_db, workspace_id, tmp_path):
        x = service.save_storage(workspace_id, make_local_storage(workspace_id, tmp_path / "x", name="x"))
        y = service.save_storage(workspace_id, make_local_storage(workspace_id, tmp_path / "y", name="y"))
        service.save_storage(workspace_id, make_multi_storage(workspace_id, x.id, y.id))
        other_workspace = uuid.uuid4()
        kept = service.save_storage(other_workspace, make_local_storage(other_workspace, tmp_path / "k"))

        service.on_before_workspace_deletion(workspace_id)

        assert [s.id for s in test_db.query(Storage).all()] == [kept.id]


class TestFileOperations:
    """End-to-end file operations over local and multi storages."""

    @pytest.fixture
    def replicated(self, service, workspace_id, tmp_path):
        d1 = tmp_path / "d1"
        d2 = tmp_path / "d2"
        x = service.save_storage(workspace_id, make_local_storage(workspace_id, d1, name="x"))
        y = service.save_storage(workspace_id, make_local_storage(workspace_id, d2, name="y"))
        z = service.save_storage(workspace_id, make_multi_storage(workspace_id, x.id, y.id, name="z"))
        return d1, d2, z

    @pytest.mark.asyncio
    async def test_save_get_delete_through_multi(self, service, workspace_id, replicated, staging_dir):
        d1, d2, z = replicated
        file_id = uuid.UUID(int=42)

        await service.save_file(workspace_id, z.id, file_id, io.BytesIO(bytes([1, 2, 3])))

        assert (d1 / str(file_id)).read_bytes() == bytes([1, 2, 3])
        assert (d2 / str(file_id)).read_bytes() == bytes([1, 2, 3])
        assert list(staging_dir.iterdir()) == []

        with await service.get_file(z.id, file_id) as f:
            assert f.read() == bytes([1, 2, 3])

        await service.delete_file(z.id, file_id)

        assert not (d1 / str(file_id)).exists()
        assert not (d2 / str(file_id)).exists()

    @pytest.mark.asyncio
    async def test_partial_replication_recorded(self, service, workspace_id, replicated):
        d1, d2, z = replicated
        await service.save_file(workspace_id, z.id, uuid.UUID(int=42), io.BytesIO(b"first"))

        # Secondary directory becomes unusable
        shutil.rmtree(d2)
        d2.write_bytes(b"")
        file_id = uuid.UUID(int=43)

        with pytest.raises(PartialReplicationError):
            await service.save_file(workspace_id, z.id, file_id, io.BytesIO(bytes([1, 2, 3])))

        assert (d1 / str(file_id)).read_bytes() == bytes([1, 2, 3])
        assert service.repository.find_by_id(z.id).last_save_error

    @pytest.mark.asyncio
    async def test_failover_read_when_primary_lost(self, service, workspace_id, replicated):
        d1, d2, z = replicated
        file_id = uuid.UUID(int=42)
        await service.save_file(workspace_id, z.id, file_id, io.BytesIO(b"payload"))

        (d1 / str(file_id)).unlink()

        with await service.get_file(z.id, file_id) as f:
            assert f.read() == b"payload"

    @pytest.mark.asyncio
    async def test_successful_save_clears_error(self, service, workspace_id, tmp_path):
        saved = service.save_storage(workspace_id, make_local_storage(workspace_id, tmp_path / "d"))
        saved.last_save_error = "old failure"
        service.repository.save(saved)

        await service.save_file(workspace_id, saved.id, uuid.uuid4(), io.BytesIO(b"x"))

        assert service.repository.find_by_id(saved.id).last_save_error is None

    @pytest.mark.asyncio
    async def test_save_to_other_workspace_rejected(self, service, workspace_id, tmp_path):
        saved = service.save_storage(workspace_id, make_local_storage(workspace_id, tmp_path / "d"))

        with pytest.raises(StoragePermissionError):
            await service.save_file(uuid.uuid4(), saved.id, uuid.uuid4(), io.BytesIO(b"x"))

        assert not (tmp_path / "d").exists()

    @pytest.mark.asyncio
    async def test_cancelled_save(self, service, workspace_id, tmp_path):
        saved = service.save_storage(workspace_id, make_local_storage(workspace_id, tmp_path / "d"))
        ctx = SaveContext(workspace_id=workspace_id)
        ctx.cancel()

        with pytest.raises(StorageCancelledError):
            await service.save_file(workspace_id, saved.id, uuid.uuid4(), io.BytesIO(b"x"), ctx=ctx)

        assert service.repository.find_by_id(saved.id).last_save_error == "save operation was cancelled"


class TestConnectionChecks:
    """Tests for saved and direct connection tests."""

    @pytest.mark.asyncio
    async def test_saved_storage_success(self, service, workspace_id, tmp_path):
        saved = service.save_storage(workspace_id, make_local_storage(workspace_id, tmp_path / "d"))

        await service.test_storage_connection(saved.id)

        assert service.repository.find_by_id(saved.id).last_save_error is None

    @pytest.mark.asyncio
    async def test_saved_storage_failure_recorded(self, service, workspace_id, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_bytes(b"")
        saved = service.save_storage(workspace_id, make_local_storage(workspace_id, blocker))

        with pytest.raises(StorageConnectionError):
            await service.test_storage_connection(saved.id)

        assert "not writable" in service.repository.find_by_id(saved.id).last_save_error

    @pytest.mark.asyncio
    async def test_direct_check_persists_nothing(self, service, test_db, workspace_id, tmp_path):
        await service.test_storage_connection_direct(make_local_storage(workspace_id, tmp_path / "d"))

        assert test_db.query(Storage).count() == 0

    @pytest.mark.asyncio
    async def test_direct_check_failure(self, service, workspace_id, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_bytes(b"")

        with pytest.raises(StorageConnectionError):
            await service.test_storage_connection_direct(make_local_storage(workspace_id, blocker))

    @pytest.mark.asyncio
    async def test_direct_check_on_edit_does_not_persist(self, service, test_db, workspace_id, tmp_path):
        saved = service.save_storage(workspace_id, make_local_storage(workspace_id, tmp_path / "d"))

        edited = make_local_storage(workspace_id, tmp_path / "edited")
        edited.id = saved.id
        await service.test_storage_connection_direct(edited)

        assert test_db.query(LocalStorage).one().path == str(tmp_path / "d")

    @pytest.mark.asyncio
    async def test_undecryptable_credentials_recorded(self, service, workspace_id):
        other = FernetFieldEncryptor("another-key")
        storage = Storage(
            workspace_id=workspace_id,
            type=StorageType.S3,
            name="s3",
            s3_storage=S3Storage(
                s3_bucket="backups",
                s3_access_key=other.encrypt("AKIA"),
                s3_secret_key=other.encrypt("secret"),
            ),
        )
        saved = service.save_storage(workspace_id, storage)

        with pytest.raises(StorageError, match="failed to decrypt credentials"):
            await service.test_storage_connection(saved.id)

        assert "failed to decrypt credentials" in service.repository.find_by_id(saved.id).last_save_error
