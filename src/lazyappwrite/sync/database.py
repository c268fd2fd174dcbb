"""Database container existence and connection health."""

import logging
from typing import Any, Callable

from appwrite.exception import AppwriteException
from appwrite.query import Query

from lazyappwrite.backend.utils import is_conflict, is_not_found
from lazyappwrite.exceptions import AppwriteError, ConfigError
from lazyappwrite.sync.guard import SyncState
from lazyappwrite.sync.retry import with_retry

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Ensures the connection works and the database container exists."""

    def __init__(
        self,
        tables: Any,
        state: SyncState,
        retry: Callable = with_retry,
    ) -> None:
        self._tables = tables
        self._state = state
        self._retry = retry

    def ensure_database(self, database_id: str, database_name: str) -> None:
        """Verify the connection once, then create the database if missing.

        Raises:
            ConfigError: If the connection check fails.
            AppwriteError: If the database cannot be read or created.
        """
        self.verify_connection()

        if self._state.is_database_verified(database_id):
            return

        try:
            self._tables.get(database_id=database_id)
        except AppwriteException as e:
            if not is_not_found(e):
                raise AppwriteError("Failed to check database") from e
            self._create(database_id, database_name)

        self._state.mark_database_verified(database_id)

    def verify_connection(self) -> None:
        """Run one lightweight read to validate endpoint, project and key.

        Only the first successful check per process hits the network.
        """
        if self._state.connection_verified:
            return

        logger.info("Verifying Appwrite connection...")
        try:
            self._tables.list(queries=[Query.limit(1)])
        except AppwriteException as e:
            logger.error(
                "Connection failed. Check your project ID, API key and endpoint. "
                "Raw error: %s",
                e,
            )
            raise ConfigError("Invalid config credentials or endpoint") from e

        self._state.mark_connection_verified()
        logger.info("Connection verified.")

    def _create(self, database_id: str, database_name: str) -> None:
        try:
            self._retry(
                lambda: self._tables.create(database_id=database_id, name=database_name)
            )
        except AppwriteException as e:
            if is_conflict(e):
                logger.info("Database already exists (created concurrently).")
                return
            logger.error("Failed to create database: %s", e)
            raise AppwriteError("Failed to create database") from e
        logger.info("Database created.")
