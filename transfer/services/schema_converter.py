"""Conversion of relational schema metadata into collections, attributes and indexes."""

import re
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Type

from ..models.database import (
    Attribute,
    BoolAttribute,
    Collection,
    DateTimeAttribute,
    FloatAttribute,
    Index,
    IndexOrder,
    IndexType,
    IntAttribute,
    StringAttribute,
)
from ..state import TransferState

logger = logging.getLogger(__name__)

QueryFn = Callable[[str, Optional[Sequence[Any]]], List[Dict[str, Any]]]


# Physical column type -> (attribute variant, variant-specific bounds)
TYPE_TABLE: Dict[str, Tuple[Type[Attribute], Dict[str, Any]]] = {
    # Booleans
    "boolean": (BoolAttribute, {}),
    "bool": (BoolAttribute, {}),
    # Integers
    "smallint": (IntAttribute, {"min": -32768, "max": 32767}),
    "int2": (IntAttribute, {"min": -32768, "max": 32767}),
    "integer": (IntAttribute, {"min": -2147483648, "max": 2147483647}),
    "int4": (IntAttribute, {"min": -2147483648, "max": 2147483647}),
    "bigint": (IntAttribute, {}),
    "int8": (IntAttribute, {}),
    "numeric": (IntAttribute, {}),
    # Floats
    "decimal": (FloatAttribute, {}),
    "real": (FloatAttribute, {}),
    "double precision": (FloatAttribute, {}),
    "float4": (FloatAttribute, {}),
    "float8": (FloatAttribute, {}),
    "money": (FloatAttribute, {}),
    # Temporal, values are converted with the documents
    "timestamp with time zone": (DateTimeAttribute, {}),
    "timestamp without time zone": (DateTimeAttribute, {}),
    "timestamptz": (DateTimeAttribute, {}),
    "timestamp": (DateTimeAttribute, {}),
    "date": (DateTimeAttribute, {}),
    "time": (DateTimeAttribute, {}),
    "timetz": (DateTimeAttribute, {}),
    "time with time zone": (DateTimeAttribute, {}),
    "time without time zone": (DateTimeAttribute, {}),
    "interval": (DateTimeAttribute, {}),
    # Strings and objects
    "uuid": (StringAttribute, {}),
    "character varying": (StringAttribute, {}),
    "varchar": (StringAttribute, {}),
    "character": (StringAttribute, {}),
    "bpchar": (StringAttribute, {}),
    "text": (StringAttribute, {}),
    "json": (StringAttribute, {}),
    "jsonb": (StringAttribute, {}),
    "bytea": (StringAttribute, {}),
}

INDEX_PATTERN = re.compile(
    r"^CREATE\s+(?:(?P<type>UNIQUE|FULLTEXT)\s+)?INDEX\s+(?P<name>\w+)\s+"
    r"ON\s+(?:ONLY\s+)?(?P<table>(?:\"?\w+\"?\.)?\"?\w+\"?)\s+"
    r"USING\s+(?P<method>\w+)\s*\((?P<columns>[^()]*)\)",
    re.IGNORECASE,
)

INDEX_COLUMN_PATTERN = re.compile(
    r"^\"?(?P<column>\w+)\"?(?:\s+(?P<direction>ASC|DESC))?(?:\s+NULLS\s+(?:FIRST|LAST))?$",
    re.IGNORECASE,
)


class SchemaConverter:
    """
    Converts Postgres catalog metadata into the collection model.

    Conversion never aborts on a single column or index: unknown column
    types fall back to an unbounded string attribute with a WARNING log,
    unsupported or unparsable indexes are dropped with an ERROR log.
    """

    def __init__(self, query: QueryFn, state: TransferState, schema: str = "public"):
        """
        Initialize the converter.

        Args:
            query: Relational query collaborator, ``query(sql, params) -> rows``
            state: Run state receiving conversion logs
            schema: Schema the tables live in
        """
        self.query = query
        self.state = state
        self.schema = schema

    def convert_collection(self, table_name: str) -> Collection:
        """Convert a table, its columns and its indexes into a Collection."""
        columns = self.query(
            'SELECT * FROM information_schema."columns" '
            "WHERE table_schema = %s AND table_name = %s "
            "ORDER BY ordinal_position",
            (self.schema, table_name),
        )

        collection = Collection(id=table_name, name=table_name)
        collection.attributes = [self.convert_attribute(column) for column in columns]

        index_rows = self.query(
            "SELECT indexname, indexdef FROM pg_indexes "
            "WHERE schemaname = %s AND tablename = %s ORDER BY indexname",
            (self.schema, table_name),
        )
        for row in index_rows:
            index = self.convert_index(row)
            if index is not None:
                collection.indexes.append(index)

        logger.debug(
            f"Converted table {table_name}: {len(collection.attributes)} attributes, "
            f"{len(collection.indexes)} indexes"
        )
        return collection

    def convert_attribute(self, column: Dict[str, Any]) -> Attribute:
        """
        Convert an ``information_schema.columns`` row into an Attribute.

        Array columns report ``data_type == "ARRAY"`` and carry the element
        type in ``udt_name`` with a leading underscore (``_int4``).
        """
        key = column["column_name"]
        is_array = column.get("data_type") == "ARRAY"
        type_name = (column.get("udt_name") or "").lstrip("_") if is_array else column.get("data_type")
        required = column.get("is_nullable") == "NO"
        default = column.get("column_default")

        variant, bounds = TYPE_TABLE.get(type_name, (None, {}))

        if variant is None:
            self.state.warning(
                f"Unknown data type: {type_name} for column: {key}. Falling back to string."
            )
            variant = StringAttribute

        if variant is DateTimeAttribute:
            return DateTimeAttribute(key=key, required=required, array=is_array, default=None)

        if variant is StringAttribute:
            size = (
                column.get("character_maximum_length")
                or column.get("character_octet_length")
                or StringAttribute.DEFAULT_SIZE
            )
            return StringAttribute(
                key=key, required=required, array=is_array, default=default, size=int(size)
            )

        return variant(key=key, required=required, array=is_array, default=default, **bounds)

    def convert_index(self, index: Dict[str, Any]) -> Optional[Index]:
        """
        Convert a ``pg_indexes`` row into an Index.

        Returns:
            The Index, or None if the index was dropped (and logged)
        """
        definition = index.get("indexdef", "")
        match = INDEX_PATTERN.match(definition)

        if match is None:
            self._skip_index(definition, index.get("indexname", ""))
            return None

        name = match.group("name")
        method = match.group("method").lower()

        if method != "btree":
            self.state.error(
                f"Skipping index due to unsupported type: {method} for index: {name}. "
                "Transfers only support BTree."
            )
            return None

        attributes: List[str] = []
        orders: List[IndexOrder] = []

        for target in match.group("columns").split(","):
            column_match = INDEX_COLUMN_PATTERN.match(target.strip())
            if column_match is None:
                self._skip_index(definition, name)
                return None
            attributes.append(column_match.group("column"))
            direction = (column_match.group("direction") or "ASC").upper()
            orders.append(IndexOrder(direction))

        marker = (match.group("type") or "").upper()
        if marker == "UNIQUE":
            index_type = IndexType.UNIQUE
        elif marker == "FULLTEXT":
            index_type = IndexType.FULLTEXT
        else:
            index_type = IndexType.KEY

        return Index(id=name, name=name, type=index_type, attributes=attributes, orders=orders)

    def _skip_index(self, definition: str, name: str) -> None:
        self.state.error(
            f"Skipping index due to unsupported format: {definition} for index: {name}. "
            "Transfers only support BTree."
        )
