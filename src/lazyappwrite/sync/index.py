"""Index creation, ghost cleanup and drift repair."""

import logging
import time
from typing import Any, Callable, Iterable

from appwrite.exception import AppwriteException

from lazyappwrite.backend.utils import field, is_conflict, is_not_found, items
from lazyappwrite.exceptions import AppwriteError, LazyError
from lazyappwrite.schema.models import IndexSchema, is_system_column
from lazyappwrite.sync.poller import await_column_ready
from lazyappwrite.sync.retry import with_retry
from lazyappwrite.types import ColumnStatus, IndexType

logger = logging.getLogger(__name__)

_GHOST_STATUSES = {ColumnStatus.FAILED.value, ColumnStatus.STUCK.value}


def index_columns(remote: Any) -> list[str]:
    """Columns of a remote index (older backends call them attributes)."""
    columns = field(remote, "columns")
    if columns is None:
        columns = field(remote, "attributes")
    return list(columns or [])


class IndexManager:
    """Keeps declared indexes present, healthy and matching.

    Indexes stuck in ``failed``/``stuck`` (ghosts) or whose type or column
    set differs (drift) are deleted and recreated. Creation waits for every
    participating column to become available.
    """

    def __init__(
        self,
        tables: Any,
        retry: Callable = with_retry,
        poll_attempts: int = 30,
        poll_interval: float = 0.2,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._tables = tables
        self._retry = retry
        self._poll_attempts = poll_attempts
        self._poll_interval = poll_interval
        self._sleep = sleep

    def sync_indexes(
        self, database_id: str, table_id: str, indexes: Iterable[IndexSchema]
    ) -> None:
        indexes = list(indexes)
        if not indexes:
            return

        logger.info("Syncing indexes...")
        try:
            existing = self._tables.list_indexes(database_id=database_id, table_id=table_id)
        except AppwriteException as e:
            raise AppwriteError(f"Failed to list indexes of table '{table_id}'") from e

        remote_indexes = {field(i, "key"): i for i in items(existing, "indexes")}

        for index in indexes:
            remote = remote_indexes.get(index.key)
            if remote is not None and not self._needs_recreation(
                database_id, table_id, index, remote
            ):
                continue
            self.create_index(database_id, table_id, index)

    def _needs_recreation(
        self, database_id: str, table_id: str, local: IndexSchema, remote: Any
    ) -> bool:
        """Delete a ghost or drifted index. Returns True if it was deleted."""
        status = field(remote, "status")
        if status in _GHOST_STATUSES:
            logger.warning(
                "Ghost index found: [%s] is '%s'. Cleaning up...", local.key, status
            )
            self._delete_index(database_id, table_id, local.key)
            return True

        type_mismatch = field(remote, "type") != local.type.value
        column_mismatch = sorted(index_columns(remote)) != sorted(local.columns)
        if type_mismatch or column_mismatch:
            logger.warning("Index drift detected for [%s]. Recreating...", local.key)
            self._delete_index(database_id, table_id, local.key)
            return True

        return False

    def create_index(self, database_id: str, table_id: str, index: IndexSchema) -> None:
        """Wait for the index's columns, then create it.

        A column that fails or times out skips this index only.
        """
        logger.info(
            "Waiting for columns [%s] to be ready...", ", ".join(index.columns)
        )
        try:
            for key in index.columns:
                if is_system_column(key):
                    continue
                await_column_ready(
                    self._tables,
                    database_id,
                    table_id,
                    key,
                    attempts=self._poll_attempts,
                    interval=self._poll_interval,
                    sleep=self._sleep,
                )
        except LazyError as e:
            logger.error("Index skip: [%s] column failed to become available: %s", index.key, e)
            return

        logger.info("Creating index: [%s] (%s)...", index.key, index.type.value)
        params: dict[str, Any] = {
            "database_id": database_id,
            "table_id": table_id,
            "key": index.key,
            "type": index.type.value,
            "columns": list(index.columns),
        }
        # Spatial indexes reject ordering; everything else is ascending.
        if index.type is not IndexType.SPATIAL:
            params["orders"] = ["ASC"] * len(index.columns)

        try:
            self._retry(lambda: self._tables.create_index(**params))
        except AppwriteException as e:
            if is_conflict(e):
                logger.info("Index [%s] already exists (skipping).", index.key)
                return
            logger.error("Failed to create index %s: %s", index.key, e)
            raise AppwriteError(
                f"Failed to create index '{index.key}' in table '{table_id}'"
            ) from e
        logger.info("Index [%s] created.", index.key)

    def _delete_index(self, database_id: str, table_id: str, key: str) -> None:
        try:
            self._retry(
                lambda: self._tables.delete_index(
                    database_id=database_id, table_id=table_id, key=key
                )
            )
        except AppwriteException as e:
            if is_not_found(e):
                return
            raise AppwriteError(f"Failed to remove index '{key}'") from e
        logger.info("Ghost/drift index [%s] deleted.", key)
