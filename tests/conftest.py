"""
Pytest configuration and fixtures for the transfer toolkit tests.

Provides an in-memory stand-in for the Postgres query collaborator, simple
source/destination adapters and sample resources. No live backend is used.
"""

import re
from typing import Any, Dict, List, Optional, Sequence

import pytest

from transfer import registry
from transfer.exceptions import DbError
from transfer.models.database import Collection, Database, IntAttribute, StringAttribute
from transfer.models.resource import ResourceKind
from transfer.models.user import Hash, HashAlgorithm, User, UserType
from transfer.sources.base import Source
from transfer.state import TransferState


TABLE_PATTERN = re.compile(r'"public"\."(\w+)"')


class FakeDatabase:
    """
    Answers the catalog and data queries the NHost source issues.

    Tables are described with ``information_schema.columns``-shaped dicts,
    index rows with ``pg_indexes``-shaped dicts.
    """

    def __init__(self):
        self.users: List[Dict[str, Any]] = []
        self.columns: Dict[str, List[Dict[str, Any]]] = {}
        self.indexes: Dict[str, List[Dict[str, Any]]] = {}
        self.rows: Dict[str, List[Dict[str, Any]]] = {}
        self.buckets: List[Dict[str, Any]] = []
        self.files: List[Dict[str, Any]] = []
        self.calls: List[tuple] = []
        self.failing: List[str] = []
        self.closed = False

    def add_table(self, name: str, columns: List[Dict[str, Any]], rows=None, indexes=None):
        self.columns[name] = columns
        self.rows[name] = rows or []
        self.indexes[name] = indexes or []

    def close(self):
        self.closed = True

    def query(self, sql: str, params: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
        self.calls.append((sql, params))

        for fragment in self.failing:
            if fragment in sql:
                raise DbError(f"permission denied for {fragment}")

        if "COUNT(*)" in sql:
            return [{"count": len(self._count_target(sql))}]

        if "FROM auth.users" in sql:
            return self._page(self.users, params)
        if "SELECT table_name FROM information_schema.tables" in sql:
            schema, limit, offset = params
            return [{"table_name": t} for t in sorted(self.columns)][offset:offset + limit]
        if 'information_schema."columns"' in sql:
            return list(self.columns.get(params[1], []))
        if "FROM pg_indexes" in sql:
            return list(self.indexes.get(params[1], []))
        if "row_to_json" in sql:
            table = TABLE_PATTERN.search(sql).group(1)
            return [{"data": row} for row in self._page(self.rows[table], params)]
        if "FROM storage.buckets" in sql:
            return self._page(self.buckets, params)
        if "FROM storage.files" in sql:
            return self._page(self.files, params)

        raise AssertionError(f"Unexpected query: {sql}")

    def _count_target(self, sql: str) -> List[Any]:
        if "auth.users" in sql:
            return self.users
        if "information_schema.tables" in sql:
            return list(self.columns)
        if "storage.buckets" in sql:
            return self.buckets
        if "storage.files" in sql:
            return self.files
        return self.rows[TABLE_PATTERN.search(sql).group(1)]

    @staticmethod
    def _page(rows: List[Dict[str, Any]], params: Sequence[Any]) -> List[Dict[str, Any]]:
        limit, offset = params
        return rows[offset:offset + limit]


def column(name: str, data_type: str, udt_name: str = "", nullable: bool = True, **extra) -> Dict[str, Any]:
    """Build an ``information_schema.columns`` row."""
    row = {
        "column_name": name,
        "data_type": data_type,
        "udt_name": udt_name or data_type,
        "is_nullable": "YES" if nullable else "NO",
        "column_default": None,
        "character_maximum_length": None,
        "character_octet_length": None,
    }
    row.update(extra)
    return row


class StaticSource(Source):
    """Source serving fixed batches per kind."""

    def __init__(self, batches: Optional[Dict[ResourceKind, List[list]]] = None, supported=None):
        self.batches = batches or {}
        self.supported = set(supported) if supported is not None else set(self.batches)
        self.exported: List[ResourceKind] = []

    @classmethod
    def from_config(cls, options: Dict[str, Any]) -> "StaticSource":
        users = [
            User(id=f"user{i}", email=f"user{i}@example.com",
                 password_hash=Hash(hash=f"$2y$10$hash{i}", algorithm=HashAlgorithm.BCRYPT))
            for i in range(int(options.get("users", 2)))
        ]
        return cls({ResourceKind.USERS: [users]})

    def name(self) -> str:
        return "Static"

    def supported_resources(self):
        return self.supported

    def check(self, resources=None):
        return self.empty_report(resources or self.supported)

    def _export(self, kind, state, callback):
        self.exported.append(kind)
        counter = state.counter(kind)
        for batch in self.batches.get(kind, []):
            counter.total += len(batch)
            callback(batch)

    def export_users(self, state, batch_size, callback):
        self._export(ResourceKind.USERS, state, callback)

    def export_databases(self, state, batch_size, callback):
        self._export(ResourceKind.DATABASES, state, callback)

    def export_documents(self, state, batch_size, callback):
        self._export(ResourceKind.DOCUMENTS, state, callback)

    def export_files(self, state, batch_size, callback):
        self._export(ResourceKind.FILES, state, callback)

    def export_functions(self, state, batch_size, callback):
        self._export(ResourceKind.FUNCTIONS, state, callback)


@pytest.fixture
def state() -> TransferState:
    return TransferState()


@pytest.fixture
def fake_db() -> FakeDatabase:
    """A database with two users and one ``t(id int primary key, name text)`` table."""
    db = FakeDatabase()
    db.users = [
        {
            "id": "0b7d0c1e-0000-4000-8000-000000000001",
            "email": "ada@example.com",
            "display_name": "Ada",
            "password_hash": "$2a$10$abcdefghijklmnopqrstuuOe5Wb0r0x5Rmu1m7Pe2DmA5FyXyZq.",
            "phone_number": None,
            "email_verified": True,
            "phone_number_verified": False,
            "disabled": False,
        },
        {
            "id": "0b7d0c1e-0000-4000-8000-000000000002",
            "email": None,
            "display_name": "",
            "password_hash": None,
            "phone_number": "+15550100",
            "email_verified": False,
            "phone_number_verified": True,
            "disabled": True,
        },
    ]
    db.add_table(
        "t",
        [
            column("id", "integer", "int4", nullable=False),
            column("name", "text"),
        ],
        rows=[{"id": 1, "name": "first"}, {"id": 2, "name": "second"}],
        indexes=[{"indexname": "t_pkey",
                  "indexdef": "CREATE UNIQUE INDEX t_pkey ON public.t USING btree (id)"}],
    )
    return db


@pytest.fixture
def sample_database() -> Database:
    collection = Collection(
        id="t",
        name="t",
        attributes=[
            IntAttribute(key="id", required=True, min=-2147483648, max=2147483647),
            StringAttribute(key="name"),
        ],
    )
    return Database(id="public", name="public", collections=[collection])


@pytest.fixture
def bcrypt_user() -> User:
    return User(
        id="user1",
        email="user1@example.com",
        name="User One",
        password_hash=Hash(hash="$2y$10$abcdef", algorithm=HashAlgorithm.BCRYPT),
    )


@pytest.fixture
def static_adapters():
    """Register the static source under ``static`` for the duration of a test."""
    registry.register_source("static", StaticSource)
    yield
    registry._sources.pop("static", None)


def email_user(user_id: str, password_hash: str) -> User:
    """A password user, forced onto the hash-preserving path."""
    return User(
        id=user_id,
        email=f"{user_id}@example.com",
        password_hash=Hash(hash=password_hash, algorithm=HashAlgorithm.BCRYPT),
        types={UserType.EMAIL},
    )
