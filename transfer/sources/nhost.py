"""NHost source: users, schema and rows from the Postgres database behind NHost."""

import json
import logging
from typing import Any, Dict, Iterable, Iterator, List, Optional, Set

from dateutil import parser as date_parser

from .base import BatchCallback, Source
from ..clients.postgres import PostgresClient, quote_ident
from ..clients.rest import RestClient
from ..exceptions import TransferError
from ..models.database import Collection, Database, DateTimeAttribute, Document
from ..models.resource import ResourceKind
from ..models.storage import Bucket, File, FileData
from ..models.user import Hash, HashAlgorithm, User
from ..services.schema_converter import SchemaConverter
from ..state import TransferState

logger = logging.getLogger(__name__)


class NHostSource(Source):
    """
    Source for NHost projects.

    Users come from ``auth.users`` (bcrypt hashes), the ``public`` schema
    becomes a single database whose tables are collections, and table rows
    become documents. When a storage endpoint is configured, buckets and
    files are exported too, with file bytes streamed in chunks.
    """

    CHUNK_SIZE = 5 * 1024 * 1024

    def __init__(
        self,
        client: Any,
        storage: Optional[RestClient] = None,
        schema: str = "public",
        chunk_size: int = CHUNK_SIZE
    ):
        """
        Initialize the source.

        Args:
            client: Relational query collaborator exposing ``query(sql, params)``
            storage: REST client for the NHost storage API, if files are wanted
            schema: Schema exported as the database
            chunk_size: Size of file data chunks in bytes
        """
        self.client = client
        self.storage = storage
        self.schema = schema
        self.chunk_size = chunk_size

    @classmethod
    def from_config(cls, options: Dict[str, Any]) -> "NHostSource":
        """Create a source from adapter options."""
        client = PostgresClient(
            host=options["host"],
            database=options["database"],
            username=options["username"],
            password=options["password"],
            port=int(options.get("port", 5432)),
            sslmode=options.get("sslmode"),
        )

        storage = None
        if options.get("storage_url"):
            storage = RestClient(
                options["storage_url"],
                headers={"x-hasura-admin-secret": options.get("admin_secret", "")},
            )

        return cls(client, storage=storage, schema=options.get("schema", "public"))

    def name(self) -> str:
        return "NHost"

    def close(self) -> None:
        self.client.close()
        if self.storage is not None:
            self.storage.close()

    def supported_resources(self) -> Set[ResourceKind]:
        resources = {ResourceKind.USERS, ResourceKind.DATABASES, ResourceKind.DOCUMENTS}
        if self.storage is not None:
            resources.add(ResourceKind.FILES)
        return resources

    def _count(self, sql: str, params: Optional[tuple] = None) -> int:
        rows = self.client.query(sql, params)
        if not rows:
            return 0
        return int(next(iter(rows[0].values())) or 0)

    # Users

    def export_users(self, state: TransferState, batch_size: int, callback: BatchCallback) -> None:
        counter = state.counter(ResourceKind.USERS)
        counter.total = self._count("SELECT COUNT(*) AS count FROM auth.users")

        def fetch(offset: int, limit: int) -> List[Dict[str, Any]]:
            return self.client.query(
                "SELECT * FROM auth.users ORDER BY created_at LIMIT %s OFFSET %s",
                (limit, offset),
            )

        for rows in self.stream(fetch, batch_size, counter.total):
            users = []
            for row in rows:
                try:
                    users.append(self.convert_user(row))
                except Exception as e:
                    counter.failed += 1
                    state.error(f"Failed to convert user {row.get('id')}: {e}")
            callback(users)

    @staticmethod
    def convert_user(row: Dict[str, Any]) -> User:
        """Convert an ``auth.users`` row into a User."""
        encoded = row.get("password_hash") or ""

        return User(
            id=str(row["id"]),
            email=row.get("email") or "",
            name=row.get("display_name") or "",
            password_hash=Hash(hash=encoded, algorithm=HashAlgorithm.BCRYPT) if encoded else None,
            phone=row.get("phone_number") or "",
            email_verified=bool(row.get("email_verified")),
            phone_verified=bool(row.get("phone_number_verified")),
            disabled=bool(row.get("disabled")),
        )

    # Databases

    def export_databases(self, state: TransferState, batch_size: int, callback: BatchCallback) -> None:
        tables_filter = "WHERE table_schema = %s AND table_type = 'BASE TABLE'"
        total = self._count(
            f"SELECT COUNT(*) AS count FROM information_schema.tables {tables_filter}",
            (self.schema,),
        )

        # A single database is exported: the configured schema.
        counter = state.counter(ResourceKind.DATABASES)
        counter.total = 1

        database = Database(id=self.schema, name=self.schema)
        converter = SchemaConverter(self.client.query, state, self.schema)

        def fetch(offset: int, limit: int) -> List[Dict[str, Any]]:
            return self.client.query(
                f"SELECT table_name FROM information_schema.tables {tables_filter} "
                "ORDER BY table_name LIMIT %s OFFSET %s",
                (self.schema, limit, offset),
            )

        for rows in self.stream(fetch, batch_size, total):
            for row in rows:
                try:
                    database.collections.append(converter.convert_collection(row["table_name"]))
                except Exception as e:
                    state.error(f"Failed to convert table {row['table_name']}: {e}")

        logger.info(f"Exported database {database.name} with {len(database.collections)} collections")
        callback([database])

    # Documents

    def export_documents(self, state: TransferState, batch_size: int, callback: BatchCallback) -> None:
        counter = state.counter(ResourceKind.DOCUMENTS)

        for database in state.cache.databases:
            for collection in database.collections:
                table = quote_ident(self.schema, collection.name)
                total = self._count(f"SELECT COUNT(*) AS count FROM {table}")
                counter.total += total

                def fetch(offset: int, limit: int, table: str = table) -> List[Dict[str, Any]]:
                    return self.client.query(
                        f"SELECT row_to_json(t) AS data FROM "
                        f"(SELECT * FROM {table} LIMIT %s OFFSET %s) t",
                        (limit, offset),
                    )

                for rows in self.stream(fetch, batch_size, total):
                    documents = []
                    for row in rows:
                        try:
                            documents.append(self.convert_document(database.id, collection, row["data"]))
                        except Exception as e:
                            counter.failed += 1
                            state.error(f"Failed to convert row of {collection.name}: {e}", collection)
                    callback(documents)

    def convert_document(self, database_id: str, collection: Collection, data: Any) -> Document:
        """
        Build a Document from a ``row_to_json`` value.

        Composite values in non-array attributes are re-encoded as JSON text,
        temporal values are normalised to ISO-8601.
        """
        if isinstance(data, str):
            data = json.loads(data)

        processed: Dict[str, Any] = {}
        for attribute in collection.attributes:
            value = data.get(attribute.key)

            if not attribute.array and isinstance(value, (list, dict)):
                value = json.dumps(value)
            elif isinstance(attribute, DateTimeAttribute) and value is not None:
                if attribute.array and isinstance(value, list):
                    value = [self.convert_datetime(v) for v in value]
                else:
                    value = self.convert_datetime(value)

            processed[attribute.key] = value

        return Document(id="unique()", database_id=database_id, collection=collection, data=processed)

    @staticmethod
    def convert_datetime(value: Any) -> Any:
        """Normalise an ISO-ish timestamp; values that are not dates pass through."""
        if not isinstance(value, str):
            return value
        try:
            return date_parser.isoparse(value).isoformat()
        except ValueError:
            return value

    # Files

    def export_files(self, state: TransferState, batch_size: int, callback: BatchCallback) -> None:
        if self.storage is None:
            raise self._unsupported(ResourceKind.FILES)

        counter = state.counter(ResourceKind.FILES)
        bucket_total = self._count("SELECT COUNT(*) AS count FROM storage.buckets")
        file_total = self._count("SELECT COUNT(*) AS count FROM storage.files WHERE is_uploaded")
        counter.total = bucket_total + file_total

        def fetch_buckets(offset: int, limit: int) -> List[Dict[str, Any]]:
            return self.client.query(
                "SELECT * FROM storage.buckets ORDER BY created_at LIMIT %s OFFSET %s",
                (limit, offset),
            )

        def fetch_files(offset: int, limit: int) -> List[Dict[str, Any]]:
            return self.client.query(
                "SELECT * FROM storage.files WHERE is_uploaded "
                "ORDER BY created_at LIMIT %s OFFSET %s",
                (limit, offset),
            )

        for rows in self.stream(fetch_buckets, batch_size, bucket_total):
            callback([self.convert_bucket(row) for row in rows])

        for rows in self.stream(fetch_files, batch_size, file_total):
            files = [self.convert_file(row) for row in rows]
            callback(files)

            for file in files:
                try:
                    for chunk in self.download(file):
                        callback([chunk])
                except TransferError as e:
                    counter.failed += 1
                    state.error(f"Failed to download file: {e.message}", file)

    @staticmethod
    def convert_bucket(row: Dict[str, Any]) -> Bucket:
        return Bucket(
            id=str(row["id"]),
            name=str(row["id"]),
            max_file_size=row.get("max_upload_file_size"),
        )

    @staticmethod
    def convert_file(row: Dict[str, Any]) -> File:
        return File(
            id=str(row["id"]),
            bucket_id=str(row["bucket_id"]),
            file_name=row.get("name") or str(row["id"]),
            size=int(row.get("size") or 0),
            mime_type=row.get("mime_type") or "application/octet-stream",
            signature=(row.get("etag") or "").strip('"'),
        )

    def download(self, file: File) -> Iterator[FileData]:
        """Stream a file's bytes from the storage API with ranged requests."""
        for offset in range(0, file.size, self.chunk_size):
            end = min(offset + self.chunk_size, file.size) - 1
            chunk = self.storage.download(
                f"/v1/files/{file.id}",
                headers={"Range": f"bytes={offset}-{end}"},
            )
            yield FileData(file=file, chunk=chunk, offset=offset)

    # Checks

    def check(self, resources: Optional[Iterable[ResourceKind]] = None) -> Dict[ResourceKind, List[str]]:
        requested = set(resources) if resources else self.supported_resources()
        report = self.empty_report(requested)

        probes = {
            ResourceKind.USERS: ("SELECT COUNT(*) AS count FROM auth.users", "users table"),
            ResourceKind.DATABASES: (
                "SELECT COUNT(*) AS count FROM information_schema.tables WHERE table_schema = %s",
                "tables table",
            ),
            ResourceKind.FILES: ("SELECT COUNT(*) AS count FROM storage.files", "files table"),
        }

        for kind in requested:
            if kind not in self.supported_resources():
                report[kind].append(f"{kind.value} is not supported by {self.name()}")
                continue

            if kind in probes:
                sql, label = probes[kind]
                params = (self.schema,) if "%s" in sql else None
                try:
                    self.client.query(sql, params)
                except TransferError as e:
                    report[kind].append(f"Failed to access {label}. Error: {e.message}")

            if kind == ResourceKind.DOCUMENTS and ResourceKind.DATABASES not in requested:
                report[kind].append("Documents resource requires Databases resource to be enabled.")

            if kind == ResourceKind.FILES:
                try:
                    self.storage.call("GET", "/v1/version")
                except TransferError as e:
                    report[kind].append(f"Failed to reach storage API. Error: {e.message}")

        return report
