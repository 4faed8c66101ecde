"""Tests for the Appwrite and local destinations."""

import json
import os
from unittest.mock import MagicMock, Mock

import pytest

from conftest import email_user
from transfer.destinations.appwrite import AppwriteDestination
from transfer.destinations.local import LocalDestination
from transfer.exceptions import ConnectivityError, HttpError, UnsupportedOperation
from transfer.models.database import Document
from transfer.models.function import Function
from transfer.models.progress import LogLevel
from transfer.models.resource import ResourceKind
from transfer.models.storage import Bucket, File, FileData
from transfer.models.user import User
from transfer.services.credentials import CredentialDispatcher


@pytest.fixture
def appwrite():
    destination = AppwriteDestination(MagicMock())
    destination.users = Mock()
    destination.databases = Mock()
    destination.storage = Mock()
    destination.functions = Mock()
    destination.dispatcher = CredentialDispatcher(destination.users)
    return destination


class TestAppwriteUsers:
    """Test user import and partial-failure isolation."""

    def test_bad_hash_fails_only_that_user(self, appwrite, state):
        batch = [email_user("u1", "$2y$10$one"), email_user("u2", ""), email_user("u3", "$2y$10$three")]
        progress = []

        appwrite.import_resources(ResourceKind.USERS, state, batch, progress.append)

        created = [c.args[0] for c in appwrite.users.create_bcrypt_user.call_args_list]
        assert created == ["u1", "u3"]
        assert len(progress) == 1
        assert progress[0].current == 2
        assert progress[0].failed == 1
        errors = state.logs_by_level(LogLevel.ERROR)
        assert len(errors) == 1
        assert errors[0].resource.id == "u2"

    def test_user_without_password_uses_plain_create(self, appwrite, state):
        user = User(id="p1", phone="+15550100")

        appwrite.import_users(state, [user], lambda p: None)

        appwrite.users.create.assert_called_once_with("p1", email=None, phone="+15550100", name=None)
        appwrite.users.create_bcrypt_user.assert_not_called()

    def test_follow_up_failure_is_a_warning(self, appwrite, state, bcrypt_user):
        bcrypt_user.email_verified = True
        bcrypt_user.disabled = True
        appwrite.users.update_name.side_effect = HttpError(500, "boom")
        progress = []

        appwrite.import_users(state, [bcrypt_user], progress.append)

        assert progress[0].current == 1
        assert progress[0].failed == 0
        appwrite.users.update_email_verification.assert_called_once_with("user1", True)
        appwrite.users.update_status.assert_called_once_with("user1", False)
        warnings = state.logs_by_level(LogLevel.WARNING)
        assert len(warnings) == 1
        assert "name" in warnings[0].message

    def test_empty_batch_still_reports_progress(self, appwrite, state):
        state.counter(ResourceKind.USERS).total = 7
        state.counter(ResourceKind.USERS).current = 3
        progress = []

        appwrite.import_users(state, [], progress.append)

        assert len(progress) == 1
        assert (progress[0].total, progress[0].current, progress[0].failed) == (7, 3, 0)


class TestAppwriteDatabases:
    def test_schema_is_created(self, appwrite, state, sample_database):
        appwrite.import_databases(state, [sample_database], lambda p: None)

        appwrite.databases.create.assert_called_once_with("public", "public")
        appwrite.databases.create_collection.assert_called_once_with("public", "t", "t")
        calls = appwrite.databases.create_attribute.call_args_list
        assert [c.args[2] for c in calls] == ["integer", "string"]
        assert calls[0].args[3]["max"] == 2147483647
        assert "default" not in calls[0].args[3]
        assert calls[1].args[3]["size"] == 10485760

    def test_attribute_failure_does_not_fail_database(self, appwrite, state, sample_database):
        appwrite.databases.create_attribute.side_effect = HttpError(400, "bad attribute")
        progress = []

        appwrite.import_databases(state, [sample_database], progress.append)

        assert progress[0].current == 1
        assert len(state.logs_by_level(LogLevel.ERROR)) == 2

    def test_documents(self, appwrite, state, sample_database):
        collection = sample_database.collections[0]
        document = Document(id="unique()", database_id="public", collection=collection,
                            data={"id": 1, "name": "first"})

        appwrite.import_documents(state, [document], lambda p: None)

        appwrite.databases.create_document.assert_called_once_with(
            "public", "t", "unique()", {"id": 1, "name": "first"}
        )


class TestAppwriteFiles:
    def test_chunks_are_uploaded_with_ranges(self, appwrite, state):
        file = File(id="f1", bucket_id="b1", file_name="a.txt", size=5)
        batch = [Bucket(id="b1", name="Bucket"), file,
                 FileData(file=file, chunk=b"abc", offset=0), FileData(file=file, chunk=b"de", offset=3)]
        progress = []

        appwrite.import_files(state, batch, progress.append)

        appwrite.storage.create_bucket.assert_called_once()
        uploads = appwrite.storage.upload_chunk.call_args_list
        assert [(c.args[4], c.args[5], c.args[6]) for c in uploads] == [(0, 2, 5), (3, 4, 5)]
        assert progress[0].current == 2

    def test_empty_file_is_uploaded_once(self, appwrite, state):
        file = File(id="f0", bucket_id="b1", file_name="empty.txt", size=0)
        progress = []

        appwrite.import_files(state, [file], progress.append)

        appwrite.storage.upload_chunk.assert_called_once_with(
            "b1", "f0", "empty.txt", b"", 0, 0, 0, permissions=[]
        )
        assert progress[0].current == 1

    def test_failed_first_chunk_is_not_counted_as_imported(self, appwrite, state):
        file = File(id="f1", bucket_id="b1", file_name="a.txt", size=5)
        appwrite.storage.upload_chunk.side_effect = HttpError(500, "boom")
        progress = []

        appwrite.import_files(state, [file, FileData(file=file, chunk=b"abc")], progress.append)

        assert progress[0].current == 0
        assert progress[0].failed == 1

    def test_functions_with_variables(self, appwrite, state):
        function = Function(id="fn1", name="hello", runtime="python-3.11", variables={"A": "1"})

        appwrite.import_functions(state, [function], lambda p: None)

        appwrite.functions.create.assert_called_once()
        appwrite.functions.create_variable.assert_called_once_with("fn1", "A", "1")


class TestAppwriteCheck:
    def test_healthy(self, appwrite):
        assert appwrite.check({ResourceKind.USERS}) == {ResourceKind.USERS: []}

    def test_inaccessible(self, appwrite):
        appwrite.users.list.side_effect = HttpError(401, "unauthorized")
        assert appwrite.check({ResourceKind.USERS})[ResourceKind.USERS]


class TestLocalDestination:
    """Test staging to disk."""

    def test_batches_are_written_to_backup(self, tmp_path, state, sample_database, bcrypt_user):
        destination = LocalDestination(tmp_path)

        destination.import_resources(ResourceKind.USERS, state, [bcrypt_user], lambda p: None)
        destination.import_resources(ResourceKind.DATABASES, state, [sample_database], lambda p: None)

        data = json.loads((tmp_path / "backup.json").read_text())
        assert data["Users"][0]["passwordHash"]["hash"] == "$2y$10$abcdef"
        assert data["Databases"][0]["collections"][0]["attributes"][0]["key"] == "id"

    def test_backup_is_synced_before_progress(self, tmp_path, state, bcrypt_user):
        destination = LocalDestination(tmp_path)
        seen = []

        def on_progress(progress):
            seen.append(json.loads((tmp_path / "backup.json").read_text()))

        destination.import_users(state, [bcrypt_user], on_progress)

        assert len(seen[0]["Users"]) == 1

    def test_batches_accumulate_in_staging_files(self, tmp_path, state, bcrypt_user):
        destination = LocalDestination(tmp_path)

        destination.import_users(state, [bcrypt_user], lambda p: None)
        destination.import_users(state, [email_user("u2", "$2y$10$second")], lambda p: None)

        staged = (tmp_path / ".staging" / "Users.jsonl").read_text().splitlines()
        assert [json.loads(line)["id"] for line in staged] == [bcrypt_user.id, "u2"]
        data = json.loads((tmp_path / "backup.json").read_text())
        assert [u["id"] for u in data["Users"]] == [bcrypt_user.id, "u2"]

    def test_new_run_starts_from_empty_staging(self, tmp_path, state, bcrypt_user):
        LocalDestination(tmp_path).import_users(state, [bcrypt_user], lambda p: None)

        LocalDestination(tmp_path).import_users(state, [email_user("u2", "$2y$10$second")], lambda p: None)

        data = json.loads((tmp_path / "backup.json").read_text())
        assert [u["id"] for u in data["Users"]] == ["u2"]

    def test_file_chunks_go_to_sidecar(self, tmp_path, state):
        destination = LocalDestination(tmp_path)
        file = File(id="f1", bucket_id="b1", file_name="a.txt", size=5)
        (tmp_path / "files").mkdir()
        (tmp_path / "files" / "a.txt").write_bytes(b"stale")
        progress = []

        destination.import_files(state, [file, FileData(file=file, chunk=b"abc")], progress.append)
        destination.import_files(state, [FileData(file=file, chunk=b"de", offset=3)], progress.append)

        assert (tmp_path / "files" / "a.txt").read_bytes() == b"abcde"
        data = json.loads((tmp_path / "backup.json").read_text())
        assert [f["id"] for f in data["Files"]] == ["f1"]
        assert progress[-1].current == 1

    def test_check_creates_directory(self, tmp_path):
        destination = LocalDestination(tmp_path / "out")

        assert destination.check({ResourceKind.USERS}) == {ResourceKind.USERS: []}
        assert (tmp_path / "out" / "files").is_dir()

    def test_check_raises_when_not_writable(self, tmp_path, monkeypatch):
        monkeypatch.setattr(os, "access", lambda path, mode: False)

        with pytest.raises(ConnectivityError):
            LocalDestination(tmp_path).check()

    def test_unknown_kind_is_unsupported(self, tmp_path, state):
        with pytest.raises(UnsupportedOperation):
            LocalDestination(tmp_path).import_resources(ResourceKind.COLLECTIONS, state, [], print)
