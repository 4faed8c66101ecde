"""Service layer for the transfer toolkit."""

from .schema_converter import SchemaConverter, TYPE_TABLE
from .credentials import CredentialDispatcher

__all__ = [
    "SchemaConverter",
    "TYPE_TABLE",
    "CredentialDispatcher",
]
