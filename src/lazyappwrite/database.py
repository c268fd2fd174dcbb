"""Row-level access to declared tables.

Tables are synced lazily: nothing touches the backend's structure until the
first mutating call on a model.
"""

import logging
from typing import Any, Optional, Union

from appwrite.exception import AppwriteException
from appwrite.id import ID
from appwrite.query import Query

from lazyappwrite.backend.utils import field, is_not_found
from lazyappwrite.schema.models import TableSchema
from lazyappwrite.sync.guard import SyncGuard
from lazyappwrite.sync.orchestrator import SchemaSync
from lazyappwrite.types import TableKey

__all__ = ["LazyDatabase", "LazyTable", "QueryInput", "build_queries"]

logger = logging.getLogger(__name__)

QueryInput = Union[list[str], dict[str, Any]]


def build_queries(
    queries: Optional[QueryInput] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> list[str]:
    """Turn a query list or an equality dict into backend query strings."""
    if isinstance(queries, dict):
        final = [Query.equal(key, value) for key, value in queries.items()]
    else:
        final = list(queries or [])

    if limit:
        final.append(Query.limit(limit))
    if offset:
        final.append(Query.offset(offset))
    return final


class LazyTable:
    """A declared table bound to a database."""

    def __init__(
        self,
        tables: Any,
        syncer: SchemaSync,
        guard: SyncGuard,
        database_id: str,
        database_name: str,
        schema: TableSchema,
    ) -> None:
        self._tables = tables
        self._syncer = syncer
        self._guard = guard
        self.database_id = database_id
        self.database_name = database_name
        self.schema = schema

    @property
    def key(self) -> TableKey:
        return TableKey(self.database_id, self.schema.id)

    def prepare(self) -> None:
        """Sync the table once per process; concurrent callers share one sync."""
        try:
            self._guard.ensure_synced(
                self.key,
                lambda: self._syncer.sync_table(
                    self.database_id, self.database_name, self.schema
                ),
            )
        except Exception as e:
            logger.error("Failed to sync table %s. Reason: %s", self.schema.name, e)
            raise

    def create(self, data: dict[str, Any], row_id: Optional[str] = None) -> Any:
        """Create a row, creating the table first if needed."""
        self.prepare()
        return self._tables.create_row(
            database_id=self.database_id,
            table_id=self.schema.id,
            row_id=row_id or ID.unique(),
            data=data,
        )

    def list(
        self,
        queries: Optional[QueryInput] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> Any:
        """List rows. A table that does not exist yet is synced and reads as empty.

        Example:
            users.list({"name": "Mark", "active": True})
            users.list([Query.greater_than("age", 18)], limit=10)
        """
        try:
            return self._tables.list_rows(
                database_id=self.database_id,
                table_id=self.schema.id,
                queries=build_queries(queries, limit, offset),
            )
        except AppwriteException as e:
            if not is_not_found(e):
                raise
        self.prepare()
        return {"rows": [], "total": 0}

    def find_first(self, queries: QueryInput) -> Optional[Any]:
        """Return the first matching row, or None."""
        result = self.list(queries, limit=1)
        rows = field(result, "rows") or []
        if field(result, "total", 0) and rows:
            return rows[0]
        return None

    def get(self, row_id: str) -> Any:
        return self._tables.get_row(
            database_id=self.database_id, table_id=self.schema.id, row_id=row_id
        )

    def update(self, row_id: str, data: dict[str, Any]) -> Any:
        self.prepare()
        return self._tables.update_row(
            database_id=self.database_id,
            table_id=self.schema.id,
            row_id=row_id,
            data=data,
        )

    def delete(self, row_id: str) -> Any:
        self.prepare()
        return self._tables.delete_row(
            database_id=self.database_id, table_id=self.schema.id, row_id=row_id
        )


class LazyDatabase:
    """Binds table declarations to one database."""

    def __init__(
        self,
        tables: Any,
        database_id: str,
        database_name: str,
        syncer: SchemaSync,
        guard: SyncGuard,
    ) -> None:
        self._tables = tables
        self._syncer = syncer
        self._guard = guard
        self.database_id = database_id
        self.database_name = database_name

    def model(self, schema: TableSchema) -> LazyTable:
        """Return a model for ``schema`` that can create, list, update and delete rows."""
        return LazyTable(
            self._tables,
            self._syncer,
            self._guard,
            self.database_id,
            self.database_name,
            schema,
        )

    def sync_all(self, schemas: list[TableSchema]) -> None:
        """Eagerly sync several declarations, in order."""
        for schema in schemas:
            self.model(schema).prepare()
