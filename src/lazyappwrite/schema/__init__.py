"""Table declarations and their YAML loader."""

from lazyappwrite.schema.loader import load_schema
from lazyappwrite.schema.models import (
    BooleanColumn,
    ColumnSchema,
    DatetimeColumn,
    EmailColumn,
    EnumColumn,
    FloatColumn,
    IndexSchema,
    IntegerColumn,
    IpColumn,
    LineColumn,
    PointColumn,
    PolygonColumn,
    RelationshipColumn,
    Schema,
    StringColumn,
    TableSchema,
    UrlColumn,
)

__all__ = [
    "BooleanColumn",
    "ColumnSchema",
    "DatetimeColumn",
    "EmailColumn",
    "EnumColumn",
    "FloatColumn",
    "IndexSchema",
    "IntegerColumn",
    "IpColumn",
    "LineColumn",
    "PointColumn",
    "PolygonColumn",
    "RelationshipColumn",
    "Schema",
    "StringColumn",
    "TableSchema",
    "UrlColumn",
    "load_schema",
]
