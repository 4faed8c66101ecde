"""Appwrite destination: imports resources through the Appwrite REST API."""

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Set

from .base import Destination, ProgressCallback
from ..clients.appwrite import AppwriteClient, Databases, Functions, Storage, Users
from ..exceptions import TransferError
from ..models.database import (
    Attribute,
    AttributeType,
    Collection,
    Database,
    Document,
    IntAttribute,
    FloatAttribute,
    StringAttribute,
)
from ..models.function import Function
from ..models.resource import Resource, ResourceKind
from ..models.storage import Bucket, File, FileData
from ..models.user import User, UserType
from ..services.credentials import CredentialDispatcher
from ..state import TransferState

logger = logging.getLogger(__name__)

# Attribute endpoint segment per variant.
ATTRIBUTE_ENDPOINTS = {
    AttributeType.BOOLEAN: "boolean",
    AttributeType.INTEGER: "integer",
    AttributeType.FLOAT: "float",
    AttributeType.STRING: "string",
    AttributeType.DATETIME: "datetime",
}


class AppwriteDestination(Destination):
    """
    Destination for Appwrite projects.

    Password users are created with their original hash through the
    credential dispatcher. Profile details that the creation endpoints do
    not accept are applied with follow-up calls; a failing follow-up is
    logged as a warning and the user still counts as imported.
    """

    def __init__(self, client: AppwriteClient):
        """
        Initialize the destination.

        Args:
            client: REST client authenticated against the Appwrite project
        """
        self.client = client
        self.users = Users(client)
        self.databases = Databases(client)
        self.storage = Storage(client)
        self.functions = Functions(client)
        self.dispatcher = CredentialDispatcher(self.users)

    @classmethod
    def from_config(cls, options: Dict[str, Any]) -> "AppwriteDestination":
        """Create a destination from adapter options."""
        return cls(AppwriteClient(options["endpoint"], options["project_id"], options["api_key"]))

    def name(self) -> str:
        return "Appwrite"

    def supported_resources(self) -> Set[ResourceKind]:
        return {
            ResourceKind.USERS,
            ResourceKind.DATABASES,
            ResourceKind.DOCUMENTS,
            ResourceKind.FILES,
            ResourceKind.FUNCTIONS,
        }

    def check(self, resources: Optional[Iterable[ResourceKind]] = None) -> Dict[ResourceKind, List[str]]:
        requested = set(resources) if resources else self.supported_resources()
        report = self.empty_report(requested)

        probes: Dict[ResourceKind, Callable[[], Any]] = {
            ResourceKind.USERS: self.users.list,
            ResourceKind.DATABASES: self.databases.list,
            ResourceKind.DOCUMENTS: self.databases.list,
            ResourceKind.FILES: self.storage.list_buckets,
            ResourceKind.FUNCTIONS: self.functions.list,
        }

        for kind in requested:
            probe = probes.get(kind)
            if probe is None:
                report[kind].append(f"{kind.value} is not supported by {self.name()}")
                continue
            try:
                probe()
            except TransferError as e:
                report[kind].append(f"Failed to list {kind.value.lower()}. Error: {e.message}")

        return report

    # Users

    def import_users(self, state: TransferState, batch: Sequence[Resource], callback: ProgressCallback) -> None:
        self._import_batch(state, ResourceKind.USERS, batch, self.create_user, callback)

    def create_user(self, state: TransferState, user: User) -> None:
        """Create a user, then apply the profile follow-ups."""
        if UserType.EMAIL in user.types:
            self.dispatcher.dispatch(user)
        else:
            self.users.create(
                user.id,
                email=user.email or None,
                phone=user.phone or None,
                name=user.name or None,
            )

        follow_ups = []
        if user.name:
            follow_ups.append(("name", lambda: self.users.update_name(user.id, user.name)))
        if user.phone and UserType.EMAIL in user.types:
            follow_ups.append(("phone", lambda: self.users.update_phone(user.id, user.phone)))
        if user.email_verified:
            follow_ups.append(
                ("email verification", lambda: self.users.update_email_verification(user.id, True))
            )
        if user.phone_verified:
            follow_ups.append(
                ("phone verification", lambda: self.users.update_phone_verification(user.id, True))
            )
        if user.disabled:
            follow_ups.append(("status", lambda: self.users.update_status(user.id, False)))

        for label, follow_up in follow_ups:
            try:
                follow_up()
            except TransferError as e:
                state.warning(f"Failed to update user {label}: {e.message}", user)

    # Databases

    def import_databases(self, state: TransferState, batch: Sequence[Resource], callback: ProgressCallback) -> None:
        self._import_batch(state, ResourceKind.DATABASES, batch, self.create_database, callback)

    def create_database(self, state: TransferState, database: Database) -> None:
        """Create a database with its collections, attributes and indexes."""
        self.databases.create(database.id, database.name)

        for collection in database.collections:
            try:
                self.databases.create_collection(database.id, collection.id, collection.name)
            except TransferError as e:
                state.error(f"Failed to create collection: {e.message}", collection)
                continue

            self.create_schema(state, database, collection)

    def create_schema(self, state: TransferState, database: Database, collection: Collection) -> None:
        for attribute in collection.attributes:
            try:
                self.databases.create_attribute(
                    database.id,
                    collection.id,
                    ATTRIBUTE_ENDPOINTS[attribute.TYPE],
                    self.attribute_params(attribute),
                )
            except TransferError as e:
                state.error(
                    f"Failed to create attribute {attribute.key}: {e.message}", collection
                )

        for index in collection.indexes:
            try:
                self.databases.create_index(
                    database.id,
                    collection.id,
                    index.name,
                    index.type.value,
                    index.attributes,
                    [order.value for order in index.orders],
                )
            except TransferError as e:
                state.error(f"Failed to create index {index.name}: {e.message}", collection)

    @staticmethod
    def attribute_params(attribute: Attribute) -> Dict[str, Any]:
        """Request parameters for an attribute variant."""
        params: Dict[str, Any] = {
            "key": attribute.key,
            "required": attribute.required,
            "array": attribute.array,
        }
        # Required attributes cannot carry a default.
        if not attribute.required:
            params["default"] = attribute.default

        if isinstance(attribute, StringAttribute):
            params["size"] = attribute.size
        elif isinstance(attribute, (IntAttribute, FloatAttribute)):
            params["min"] = attribute.min
            params["max"] = attribute.max

        return params

    # Documents

    def import_documents(self, state: TransferState, batch: Sequence[Resource], callback: ProgressCallback) -> None:
        self._import_batch(state, ResourceKind.DOCUMENTS, batch, self.create_document, callback)

    def create_document(self, state: TransferState, document: Document) -> None:
        self.databases.create_document(
            document.database_id, document.collection.id, document.id, document.data
        )

    # Files

    def import_files(self, state: TransferState, batch: Sequence[Resource], callback: ProgressCallback) -> None:
        self._import_batch(
            state,
            ResourceKind.FILES,
            batch,
            self.create_file,
            callback,
            counted=self._creates_file,
        )

    @staticmethod
    def _creates_file(resource: Resource) -> bool:
        """Whether importing this item creates a bucket or a file."""
        if isinstance(resource, FileData):
            return resource.offset == 0
        if isinstance(resource, File):
            return resource.size == 0
        return True

    def create_file(self, state: TransferState, resource: Resource) -> None:
        """
        Create a bucket, or upload one chunk of a file.

        A File carries metadata only; the file itself is created by the
        upload of its first chunk. Empty files have no chunks and are
        uploaded here with no content.
        """
        if isinstance(resource, Bucket):
            self.storage.create_bucket(
                resource.id,
                resource.name or resource.id,
                {
                    "permissions": resource.permissions,
                    "fileSecurity": resource.file_security,
                    "enabled": resource.enabled,
                    "maximumFileSize": resource.max_file_size,
                    "allowedFileExtensions": resource.allowed_extensions,
                    "compression": resource.compression,
                    "encryption": resource.encryption,
                    "antivirus": resource.antivirus,
                },
            )
        elif isinstance(resource, FileData):
            file = resource.file
            self.storage.upload_chunk(
                file.bucket_id,
                file.id,
                file.file_name,
                resource.chunk,
                resource.offset,
                resource.end,
                file.size,
                permissions=file.permissions,
            )
        elif isinstance(resource, File):
            if resource.size == 0:
                self.storage.upload_chunk(
                    resource.bucket_id,
                    resource.id,
                    resource.file_name,
                    b"",
                    0,
                    0,
                    0,
                    permissions=resource.permissions,
                )
        else:
            raise TypeError(f"Unexpected {resource.resource_name()} in files batch")

    # Functions

    def import_functions(self, state: TransferState, batch: Sequence[Resource], callback: ProgressCallback) -> None:
        self._import_batch(state, ResourceKind.FUNCTIONS, batch, self.create_function, callback)

    def create_function(self, state: TransferState, function: Function) -> None:
        self.functions.create(
            function.id,
            function.name,
            function.runtime,
            {
                "execute": function.execute,
                "events": function.events,
                "schedule": function.schedule,
                "timeout": function.timeout,
                "enabled": function.enabled,
                "entrypoint": function.entrypoint,
            },
        )

        for key, value in function.variables.items():
            try:
                self.functions.create_variable(function.id, key, value)
            except TransferError as e:
                state.warning(f"Failed to create variable {key}: {e.message}", function)
