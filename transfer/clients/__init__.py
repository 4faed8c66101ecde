"""Backend collaborators: REST calls and relational queries."""

from .rest import RestClient
from .postgres import PostgresClient, quote_ident

__all__ = [
    "RestClient",
    "PostgresClient",
    "quote_ident",
]
