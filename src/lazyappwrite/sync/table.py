"""Table existence and settings drift."""

import logging
from typing import Any, Callable

from appwrite.exception import AppwriteException

from lazyappwrite.backend.utils import field, is_conflict, is_not_found
from lazyappwrite.exceptions import AppwriteError
from lazyappwrite.schema.models import TableSchema
from lazyappwrite.sync.retry import with_retry

logger = logging.getLogger(__name__)


class TableManager:
    """Ensures a table exists and matches its declared settings."""

    def __init__(self, tables: Any, retry: Callable = with_retry) -> None:
        self._tables = tables
        self._retry = retry

    def ensure_table(self, database_id: str, schema: TableSchema) -> None:
        """Create the table, or reconcile permissions/security/enabled drift.

        At most one create or update call is made.
        """
        try:
            remote = self._tables.get_table(database_id=database_id, table_id=schema.id)
        except AppwriteException as e:
            if not is_not_found(e):
                raise AppwriteError("Failed to check table") from e
            logger.info('Table not found. Creating "%s" ...', schema.name)
            self._create(database_id, schema)
            return

        logger.info("Table matches ID: %s", schema.id)
        self._reconcile(database_id, schema, remote)

    def _create(self, database_id: str, schema: TableSchema) -> None:
        params: dict[str, Any] = {
            "database_id": database_id,
            "table_id": schema.id,
            "name": schema.name,
        }
        if schema.permissions is not None:
            params["permissions"] = list(schema.permissions)
        if schema.row_security is not None:
            params["row_security"] = schema.row_security
        if schema.enabled is not None:
            params["enabled"] = schema.enabled

        try:
            self._retry(lambda: self._tables.create_table(**params))
        except AppwriteException as e:
            # Another process won the race.
            if is_conflict(e):
                logger.info("Table already exists (skipping creation).")
                return
            raise AppwriteError(f"Failed to create table '{schema.id}'") from e
        logger.info("Table created.")

    def _reconcile(self, database_id: str, local: TableSchema, remote: Any) -> None:
        needs_update = False

        local_perms = set(local.permissions or ())
        remote_perms = set(field(remote, "$permissions") or ())
        if local_perms != remote_perms:
            logger.info("Permissions changed for [%s]. Updating...", local.name)
            needs_update = True

        local_sec = bool(local.row_security)
        remote_sec = bool(field(remote, "rowSecurity", False))
        if local_sec != remote_sec:
            logger.info(
                "Row security changed for [%s]: %s. Updating...", local.name, local_sec
            )
            needs_update = True

        # Undeclared means "leave the remote value alone".
        if local.enabled is not None and local.enabled != field(remote, "enabled"):
            logger.info(
                "Enabled status changed for [%s]: %s. Updating...",
                local.name,
                local.enabled,
            )
            needs_update = True

        if not needs_update:
            return

        params: dict[str, Any] = {
            "database_id": database_id,
            "table_id": local.id,
            "name": local.name,
        }
        # Only declared settings are sent; the backend keeps the rest.
        if local.permissions is not None:
            params["permissions"] = list(local.permissions)
        if local.row_security is not None:
            params["row_security"] = local.row_security
        if local.enabled is not None:
            params["enabled"] = local.enabled

        try:
            self._retry(lambda: self._tables.update_table(**params))
        except AppwriteException as e:
            raise AppwriteError(f"Failed to update table '{local.id}'") from e
        logger.info("Table settings updated.")
