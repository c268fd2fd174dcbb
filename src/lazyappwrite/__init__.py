"""lazyappwrite - declare Appwrite tables in code and sync them on first use."""

from lazyappwrite.client import AdminContext, create_admin_client
from lazyappwrite.config import Config, SyncSettings
from lazyappwrite.database import LazyDatabase, LazyTable
from lazyappwrite.exceptions import (
    AbortError,
    AppwriteError,
    ConfigError,
    LazyError,
    PollTimeoutError,
    SchemaLoadError,
    SyncStageError,
    ValidationError,
)
from lazyappwrite.schema import IndexSchema, TableSchema, load_schema
from lazyappwrite.types import (
    ColumnType,
    ErrorType,
    IndexType,
    OnDelete,
    RelationshipType,
    TableKey,
)

__all__ = [
    "AbortError",
    "AdminContext",
    "AppwriteError",
    "ColumnType",
    "Config",
    "ConfigError",
    "ErrorType",
    "IndexSchema",
    "IndexType",
    "LazyDatabase",
    "LazyError",
    "LazyTable",
    "OnDelete",
    "PollTimeoutError",
    "RelationshipType",
    "SchemaLoadError",
    "SyncSettings",
    "SyncStageError",
    "TableKey",
    "TableSchema",
    "ValidationError",
    "create_admin_client",
    "load_schema",
]
