"""Database, collection, attribute, index and document models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional

from .resource import Resource


class AttributeType(str, Enum):
    """Tag of an attribute variant."""
    BOOLEAN = "boolean"
    INTEGER = "integer"
    FLOAT = "double"
    STRING = "string"
    DATETIME = "datetime"


@dataclass
class Attribute:
    """A typed field definition within a collection."""
    TYPE: ClassVar[AttributeType]

    key: str
    required: bool = False
    array: bool = False
    default: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "key": self.key,
            "type": self.TYPE.value,
            "required": self.required,
            "array": self.array,
            "default": self.default,
        }


@dataclass
class BoolAttribute(Attribute):
    TYPE: ClassVar[AttributeType] = AttributeType.BOOLEAN


@dataclass
class IntAttribute(Attribute):
    """Integer attribute. ``None`` bounds mean unbounded."""
    TYPE: ClassVar[AttributeType] = AttributeType.INTEGER

    min: Optional[int] = None
    max: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result.update({"min": self.min, "max": self.max})
        return result


@dataclass
class FloatAttribute(Attribute):
    TYPE: ClassVar[AttributeType] = AttributeType.FLOAT

    min: Optional[float] = None
    max: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result.update({"min": self.min, "max": self.max})
        return result


@dataclass
class StringAttribute(Attribute):
    """String attribute bounded to ``size`` characters/bytes."""
    TYPE: ClassVar[AttributeType] = AttributeType.STRING

    DEFAULT_SIZE: ClassVar[int] = 10485760

    size: int = DEFAULT_SIZE

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["size"] = self.size
        return result


@dataclass
class DateTimeAttribute(Attribute):
    TYPE: ClassVar[AttributeType] = AttributeType.DATETIME


class IndexType(str, Enum):
    KEY = "key"
    UNIQUE = "unique"
    FULLTEXT = "fulltext"


class IndexOrder(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


@dataclass
class Index(Resource):
    """An index over one or more attributes; ``orders`` align with ``attributes``."""
    id: str
    name: str
    type: IndexType = IndexType.KEY
    attributes: List[str] = field(default_factory=list)
    orders: List[IndexOrder] = field(default_factory=list)

    def __post_init__(self):
        if len(self.orders) != len(self.attributes):
            raise ValueError(
                f"Index {self.name} has {len(self.attributes)} attributes "
                f"but {len(self.orders)} orders"
            )

    @classmethod
    def resource_name(cls) -> str:
        return "Index"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "attributes": self.attributes,
            "orders": [o.value for o in self.orders],
        }


@dataclass
class Collection(Resource):
    """A collection (table) with ordered attributes and indexes."""
    id: str
    name: str
    attributes: List[Attribute] = field(default_factory=list)
    indexes: List[Index] = field(default_factory=list)

    @classmethod
    def resource_name(cls) -> str:
        return "Collection"

    def get_attribute(self, key: str) -> Optional[Attribute]:
        """Get an attribute by key."""
        for attribute in self.attributes:
            if attribute.key == key:
                return attribute
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "attributes": [a.to_dict() for a in self.attributes],
            "indexes": [i.to_dict() for i in self.indexes],
        }


@dataclass
class Database(Resource):
    """A database holding ordered collections."""
    id: str
    name: str
    collections: List[Collection] = field(default_factory=list)

    @classmethod
    def resource_name(cls) -> str:
        return "Database"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "collections": [c.to_dict() for c in self.collections],
        }


@dataclass
class Document(Resource):
    """A document of a collection. The collection is referenced, not owned."""
    id: str
    database_id: str
    collection: Collection
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def resource_name(cls) -> str:
        return "Document"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "databaseId": self.database_id,
            "collectionId": self.collection.id,
            "data": self.data,
        }
