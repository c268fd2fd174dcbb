"""Drives one table declaration through every sync stage."""

from __future__ import annotations

import functools
import logging
import time
from typing import Any, Callable, Optional

from lazyappwrite.config import SyncSettings
from lazyappwrite.exceptions import SyncStageError
from lazyappwrite.schema.models import TableSchema
from lazyappwrite.sync.column import ColumnManager
from lazyappwrite.sync.database import DatabaseManager
from lazyappwrite.sync.guard import SyncState, default_state
from lazyappwrite.sync.index import IndexManager
from lazyappwrite.sync.retry import with_retry
from lazyappwrite.sync.table import TableManager

__all__ = ["SchemaSync", "STAGES"]

logger = logging.getLogger(__name__)

STAGES = ("database", "table", "columns", "indexes")


class SchemaSync:
    """Runs Database -> Table -> Columns -> Indexes, strictly in that order.

    Any stage failure stops the pass and is raised as SyncStageError with
    the original error chained. Every stage is idempotent, so a later call
    simply starts over from the database stage.
    """

    def __init__(
        self,
        tables: Any,
        state: Optional[SyncState] = None,
        settings: Optional[SyncSettings] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        settings = settings or SyncSettings()
        retry = functools.partial(
            with_retry,
            max_retries=settings.max_retries,
            initial_delay=settings.initial_delay,
            sleep=sleep,
        )
        self.settings = settings
        self.databases = DatabaseManager(
            tables, state if state is not None else default_state(), retry
        )
        self.tables = TableManager(tables, retry)
        self.columns = ColumnManager(
            tables, retry, pacing=settings.column_pacing, sleep=sleep
        )
        self.indexes = IndexManager(
            tables,
            retry,
            poll_attempts=settings.poll_attempts,
            poll_interval=settings.poll_interval,
            sleep=sleep,
        )

    def sync_table(
        self, database_id: str, database_name: str, schema: TableSchema
    ) -> None:
        """Reconcile one table declaration against the backend.

        Raises:
            SyncStageError: Naming the failed stage, chained to the cause.
        """
        self._run_stage(
            "database",
            lambda: self.databases.ensure_database(database_id, database_name),
        )

        logger.info("Starting sync for table: [%s]", schema.name)
        self._run_stage("table", lambda: self.tables.ensure_table(database_id, schema))

        if schema.columns:
            self._run_stage(
                "columns",
                lambda: self.columns.sync_columns(database_id, schema.id, schema.columns),
            )

        if schema.indexes:
            self._run_stage(
                "indexes",
                lambda: self.indexes.sync_indexes(database_id, schema.id, schema.indexes),
            )

        logger.info("Table [%s] sync complete.", schema.name)

    def _run_stage(self, stage: str, step: Callable[[], None]) -> None:
        try:
            step()
        except Exception as e:
            raise SyncStageError(stage, f"Failed to sync {stage}: {e}") from e
