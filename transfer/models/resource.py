"""Base resource model shared by every transferable entity."""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List


class ResourceKind(str, Enum):
    """Kinds of resources an adapter can export or import."""
    USERS = "Users"
    DATABASES = "Databases"
    COLLECTIONS = "Collections"
    DOCUMENTS = "Documents"
    FILES = "Files"
    FUNCTIONS = "Functions"


# Documents resolve against cached database schema, so Databases must run first.
TRANSFER_ORDER: List[ResourceKind] = [
    ResourceKind.USERS,
    ResourceKind.DATABASES,
    ResourceKind.DOCUMENTS,
    ResourceKind.FILES,
    ResourceKind.FUNCTIONS,
]


class Resource(ABC):
    """
    A transferable entity.

    Concrete resources are dataclasses carrying an ``id`` field. They are
    built by a Source during export and only read by a Destination.
    """

    id: str

    @classmethod
    @abstractmethod
    def resource_name(cls) -> str:
        """Label of the resource kind (e.g. ``"User"``)."""
        pass

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        pass
