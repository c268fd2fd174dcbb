"""Schema synchronization engine."""

from lazyappwrite.sync.column import ColumnManager
from lazyappwrite.sync.database import DatabaseManager
from lazyappwrite.sync.guard import SyncGuard, SyncState, default_state
from lazyappwrite.sync.index import IndexManager
from lazyappwrite.sync.orchestrator import STAGES, SchemaSync
from lazyappwrite.sync.poller import await_column_ready
from lazyappwrite.sync.retry import with_retry
from lazyappwrite.sync.table import TableManager

__all__ = [
    "ColumnManager",
    "DatabaseManager",
    "IndexManager",
    "STAGES",
    "SchemaSync",
    "SyncGuard",
    "SyncState",
    "TableManager",
    "await_column_ready",
    "default_state",
    "with_retry",
]
