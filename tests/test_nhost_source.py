"""Tests for the NHost source."""

import json
from unittest.mock import Mock

import pytest

from conftest import FakeDatabase
from transfer.exceptions import HttpError, UnsupportedOperation
from transfer.models.database import Collection, Database, DateTimeAttribute, StringAttribute
from transfer.models.resource import ResourceKind
from transfer.models.storage import Bucket, File, FileData
from transfer.models.user import HashAlgorithm, UserType
from transfer.sources.nhost import NHostSource


def collect(source, kind, state, batch_size=100):
    batches = []
    source.export(kind, state, batch_size, lambda batch: batches.append(list(batch)))
    return batches


class TestExportUsers:
    def test_users_carry_bcrypt_hash(self, fake_db, state):
        batches = collect(NHostSource(fake_db), ResourceKind.USERS, state)
        users = batches[0]

        assert users[0].password_hash.algorithm == HashAlgorithm.BCRYPT
        assert users[0].password_hash.hash == fake_db.users[0]["password_hash"]
        assert users[0].name == "Ada"
        assert users[0].email_verified is True
        assert UserType.EMAIL in users[0].types

        assert users[1].password_hash is None
        assert users[1].phone == "+15550100"
        assert users[1].phone_verified is True
        assert users[1].disabled is True
        assert users[1].types == {UserType.PHONE}

    def test_total_comes_from_count(self, fake_db, state):
        collect(NHostSource(fake_db), ResourceKind.USERS, state)
        assert state.counter(ResourceKind.USERS).total == 2

    def test_paginates_by_batch_size(self, fake_db, state):
        fake_db.users = fake_db.users * 3

        batches = collect(NHostSource(fake_db), ResourceKind.USERS, state, batch_size=4)

        assert [len(b) for b in batches] == [4, 2]

    def test_next_page_waits_for_callback(self, fake_db, state):
        fake_db.users = fake_db.users * 2
        seen = []

        def callback(batch):
            page_queries = [c for c in fake_db.calls if "ORDER BY created_at" in c[0]]
            seen.append(len(page_queries))

        NHostSource(fake_db).export(ResourceKind.USERS, state, 2, callback)

        assert seen == [1, 2]


class TestExportDatabases:
    def test_single_database_with_tables(self, fake_db, state):
        batches = collect(NHostSource(fake_db), ResourceKind.DATABASES, state)

        assert len(batches) == 1
        database = batches[0][0]
        assert database.id == "public"
        assert [c.name for c in database.collections] == ["t"]
        assert [a.key for a in database.collections[0].attributes] == ["id", "name"]
        assert state.counter(ResourceKind.DATABASES).total == 1


class TestExportDocuments:
    def test_documents_use_cached_schema(self, fake_db, state, sample_database):
        state.cache.add(ResourceKind.DATABASES, [sample_database])

        batches = collect(NHostSource(fake_db), ResourceKind.DOCUMENTS, state)

        documents = batches[0]
        assert [d.data for d in documents] == [{"id": 1, "name": "first"}, {"id": 2, "name": "second"}]
        assert documents[0].collection.id == "t"
        assert documents[0].database_id == "public"
        assert state.counter(ResourceKind.DOCUMENTS).total == 2

    def test_composite_values_are_encoded(self, state):
        db = FakeDatabase()
        db.add_table("events", [], rows=[{
            "payload": {"kind": "click", "x": 1},
            "tags": ["a", "b"],
            "at": "2024-01-02T03:04:05.123+00:00",
        }])
        collection = Collection(id="events", name="events", attributes=[
            StringAttribute(key="payload"),
            StringAttribute(key="tags", array=True),
            DateTimeAttribute(key="at"),
        ])
        state.cache.add(ResourceKind.DATABASES, [Database(id="public", name="public",
                                                           collections=[collection])])

        document = collect(NHostSource(db), ResourceKind.DOCUMENTS, state)[0][0]

        assert json.loads(document.data["payload"]) == {"kind": "click", "x": 1}
        assert document.data["tags"] == ["a", "b"]
        assert document.data["at"] == "2024-01-02T03:04:05.123000+00:00"

    def test_invalid_dates_pass_through(self):
        assert NHostSource.convert_datetime("infinity") == "infinity"

    def test_no_cached_schema_exports_nothing(self, fake_db, state):
        assert collect(NHostSource(fake_db), ResourceKind.DOCUMENTS, state) == []


class TestExportFiles:
    @pytest.fixture
    def storage_db(self):
        db = FakeDatabase()
        db.buckets = [{"id": "default", "max_upload_file_size": 1024}]
        db.files = [{"id": "f1", "bucket_id": "default", "name": "a.txt", "size": 5,
                     "mime_type": "text/plain", "etag": '"abc"'}]
        return db

    def test_file_is_emitted_before_its_chunks(self, storage_db, state):
        storage = Mock()
        storage.download.side_effect = [b"abc", b"de"]
        source = NHostSource(storage_db, storage=storage, chunk_size=3)

        batches = collect(source, ResourceKind.FILES, state)
        flat = [r for batch in batches for r in batch]

        assert isinstance(flat[0], Bucket)
        assert isinstance(flat[1], File)
        assert flat[1].signature == "abc"
        assert [(c.offset, c.chunk) for c in flat[2:]] == [(0, b"abc"), (3, b"de")]
        assert all(isinstance(c, FileData) for c in flat[2:])
        storage.download.assert_any_call("/v1/files/f1", headers={"Range": "bytes=0-2"})
        storage.download.assert_any_call("/v1/files/f1", headers={"Range": "bytes=3-4"})
        assert state.counter(ResourceKind.FILES).total == 2

    def test_download_failure_is_counted(self, storage_db, state):
        storage = Mock()
        storage.download.side_effect = HttpError(404, "not found")

        collect(NHostSource(storage_db, storage=storage), ResourceKind.FILES, state)

        assert state.counter(ResourceKind.FILES).failed == 1
        assert state.logs[-1].resource.id == "f1"

    def test_files_need_storage(self, fake_db, state):
        source = NHostSource(fake_db)

        assert ResourceKind.FILES not in source.supported_resources()
        with pytest.raises(UnsupportedOperation):
            collect(source, ResourceKind.FILES, state)


class TestCheck:
    def test_healthy_backend(self, fake_db):
        report = NHostSource(fake_db).check(
            {ResourceKind.USERS, ResourceKind.DATABASES, ResourceKind.DOCUMENTS}
        )
        assert report == {
            ResourceKind.USERS: [],
            ResourceKind.DATABASES: [],
            ResourceKind.DOCUMENTS: [],
        }

    def test_inaccessible_users_table(self, fake_db):
        fake_db.failing = ["auth.users"]

        report = NHostSource(fake_db).check({ResourceKind.USERS, ResourceKind.DATABASES})

        assert len(report[ResourceKind.USERS]) == 1
        assert report[ResourceKind.DATABASES] == []

    def test_documents_require_databases(self, fake_db):
        report = NHostSource(fake_db).check({ResourceKind.DOCUMENTS})
        assert report[ResourceKind.DOCUMENTS] == [
            "Documents resource requires Databases resource to be enabled."
        ]

    def test_unsupported_kind(self, fake_db):
        report = NHostSource(fake_db).check({ResourceKind.FUNCTIONS})
        assert report[ResourceKind.FUNCTIONS]

    def test_check_does_not_touch_state(self, fake_db, state):
        NHostSource(fake_db).check()
        assert state.logs == [] and state.counters == {}
