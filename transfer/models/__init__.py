"""Resource models for the transfer toolkit."""

from .resource import Resource, ResourceKind, TRANSFER_ORDER
from .progress import Counters, Log, LogLevel, Progress
from .user import Hash, HashAlgorithm, User, UserType, calculate_user_types
from .database import (
    Attribute,
    AttributeType,
    BoolAttribute,
    Collection,
    Database,
    DateTimeAttribute,
    Document,
    FloatAttribute,
    Index,
    IndexOrder,
    IndexType,
    IntAttribute,
    StringAttribute,
)
from .storage import Bucket, File, FileData
from .function import Function
from .transfer import AdapterConfig, TransferConfig, TransferRun, TransferStatus

__all__ = [
    "Resource",
    "ResourceKind",
    "TRANSFER_ORDER",
    "Counters",
    "Log",
    "LogLevel",
    "Progress",
    "Hash",
    "HashAlgorithm",
    "User",
    "UserType",
    "calculate_user_types",
    "Attribute",
    "AttributeType",
    "BoolAttribute",
    "Collection",
    "Database",
    "DateTimeAttribute",
    "Document",
    "FloatAttribute",
    "Index",
    "IndexOrder",
    "IndexType",
    "IntAttribute",
    "StringAttribute",
    "Bucket",
    "File",
    "FileData",
    "Function",
    "AdapterConfig",
    "TransferConfig",
    "TransferRun",
    "TransferStatus",
]
