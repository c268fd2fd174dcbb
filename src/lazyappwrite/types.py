"""Core type definitions for lazyappwrite."""

from dataclasses import dataclass
from enum import Enum
from typing import TypeAlias

DatabaseId: TypeAlias = str
TableId: TypeAlias = str
ColumnKey: TypeAlias = str

__all__ = [
    "DatabaseId",
    "TableId",
    "ColumnKey",
    "ColumnType",
    "IndexType",
    "RelationshipType",
    "OnDelete",
    "ColumnStatus",
    "ErrorType",
    "TableKey",
]


class ColumnType(str, Enum):
    """Kinds of columns a table declaration can carry."""

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    EMAIL = "email"
    URL = "url"
    IP = "ip"
    DATETIME = "datetime"
    ENUM = "enum"
    POINT = "point"
    LINE = "line"
    POLYGON = "polygon"
    RELATIONSHIP = "relationship"


class IndexType(str, Enum):
    KEY = "key"
    UNIQUE = "unique"
    FULLTEXT = "fulltext"
    SPATIAL = "spatial"


class RelationshipType(str, Enum):
    ONE_TO_ONE = "oneToOne"
    ONE_TO_MANY = "oneToMany"
    MANY_TO_ONE = "manyToOne"
    MANY_TO_MANY = "manyToMany"


class OnDelete(str, Enum):
    CASCADE = "cascade"
    RESTRICT = "restrict"
    SET_NULL = "setNull"


class ColumnStatus(str, Enum):
    """Provisioning status reported by the backend for columns and indexes."""

    PROCESSING = "processing"
    AVAILABLE = "available"
    FAILED = "failed"
    STUCK = "stuck"
    DELETING = "deleting"


class ErrorType(str, Enum):
    VALIDATION = "validation"
    CONFIG = "config"
    APPWRITE = "appwrite"
    TIMEOUT = "timeout"
    ABORT = "abort"


@dataclass(frozen=True)
class TableKey:
    """Process-wide identity of a declared table."""

    database_id: DatabaseId
    table_id: TableId

    def __str__(self) -> str:
        return f"{self.database_id}:{self.table_id}"
