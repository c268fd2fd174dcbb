"""Column creation and drift reconciliation."""

import logging
import time
from typing import Any, Callable, Iterable

from appwrite.exception import AppwriteException

from lazyappwrite.backend.utils import field, is_conflict, items, remote_kind
from lazyappwrite.exceptions import AppwriteError, ValidationError
from lazyappwrite.schema.models import ColumnSchema, RelationshipColumn
from lazyappwrite.sync.retry import with_retry
from lazyappwrite.types import ColumnType

logger = logging.getLogger(__name__)

_CREATE_METHODS: dict[ColumnType, str] = {
    ColumnType.STRING: "create_string_column",
    ColumnType.INTEGER: "create_integer_column",
    ColumnType.FLOAT: "create_float_column",
    ColumnType.BOOLEAN: "create_boolean_column",
    ColumnType.EMAIL: "create_email_column",
    ColumnType.URL: "create_url_column",
    ColumnType.IP: "create_ip_column",
    ColumnType.DATETIME: "create_datetime_column",
    ColumnType.ENUM: "create_enum_column",
    ColumnType.POINT: "create_point_column",
    ColumnType.LINE: "create_line_column",
    ColumnType.POLYGON: "create_polygon_column",
    ColumnType.RELATIONSHIP: "create_relationship_column",
}

_SPATIAL = {ColumnType.POINT, ColumnType.LINE, ColumnType.POLYGON}


def create_params(column: ColumnSchema) -> dict[str, Any]:
    """Kind-specific keyword arguments for the backend create call."""
    if isinstance(column, RelationshipColumn):
        params: dict[str, Any] = {
            "related_table_id": column.related_table_id,
            "type": column.relation_type.value,
            "on_delete": column.on_delete.value,
            "key": column.key,
        }
        if column.two_way:
            params["two_way"] = True
        if column.two_way_key:
            params["two_way_key"] = column.two_way_key
        return params

    params = {"key": column.key, "required": column.required}
    if column.default is not None:
        params["default"] = column.default
    if column.kind not in _SPATIAL and column.array:
        params["array"] = True

    if column.kind is ColumnType.STRING:
        params["size"] = column.size
    elif column.kind is ColumnType.ENUM:
        params["elements"] = list(column.elements)
    elif column.kind in (ColumnType.INTEGER, ColumnType.FLOAT):
        if column.min is not None:
            params["min"] = column.min
        if column.max is not None:
            params["max"] = column.max
    return params


class ColumnManager:
    """Creates missing columns and fixes the drift that can be fixed safely.

    Only string size growth and enum element additions are repaired. Kind
    and array-shape mismatches raise ValidationError for manual resolution.
    """

    def __init__(
        self,
        tables: Any,
        retry: Callable = with_retry,
        pacing: float = 0.1,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._tables = tables
        self._retry = retry
        self._pacing = pacing
        self._sleep = sleep

    def sync_columns(
        self, database_id: str, table_id: str, columns: Iterable[ColumnSchema]
    ) -> None:
        try:
            existing = self._tables.list_columns(database_id=database_id, table_id=table_id)
        except AppwriteException as e:
            raise AppwriteError(f"Failed to list columns of table '{table_id}'") from e

        remote_columns = {field(c, "key"): c for c in items(existing, "columns")}

        for column in columns:
            remote = remote_columns.get(column.key)
            if remote is None:
                logger.info("Creating column: [%s (%s)] ...", column.key, column.kind.value)
                self.create_column(database_id, table_id, column)
                # Give the backend a moment to start provisioning.
                self._sleep(self._pacing)
                continue

            self.reconcile(database_id, table_id, column, remote)

    def create_column(
        self, database_id: str, table_id: str, column: ColumnSchema
    ) -> None:
        method = getattr(self._tables, _CREATE_METHODS[column.kind])
        params = create_params(column)

        try:
            self._retry(
                lambda: method(database_id=database_id, table_id=table_id, **params)
            )
        except AppwriteException as e:
            if is_conflict(e):
                logger.info("Column [%s] already exists (skipping).", column.key)
                return
            raise AppwriteError(
                f"Failed to create column '{column.key}' in table '{table_id}'"
            ) from e

    def reconcile(
        self, database_id: str, table_id: str, local: ColumnSchema, remote: Any
    ) -> None:
        # TODO: reconcile relationship drift on related table and on-delete policy.
        if local.kind is ColumnType.RELATIONSHIP:
            return

        remote_type = remote_kind(remote)
        if local.kind.value != remote_type:
            raise ValidationError(
                f"Schema conflict in table '{table_id}': column '{local.key}' is "
                f"declared as '{local.kind.value}' but the database has "
                f"'{remote_type}'. Delete the column in Appwrite or update "
                f"the declaration."
            )

        local_array = bool(local.array)
        remote_array = bool(field(remote, "array", False))
        if local_array != remote_array:
            raise ValidationError(
                f"Schema conflict in table '{table_id}': column '{local.key}' "
                f"({local.kind.value}) array mismatch. Declared: {local_array}, "
                f"database: {remote_array}."
            )

        if local.kind is ColumnType.STRING:
            self._grow_string(database_id, table_id, local, remote)
        elif local.kind is ColumnType.ENUM:
            self._extend_enum(database_id, table_id, local, remote)

    def _grow_string(
        self, database_id: str, table_id: str, local: ColumnSchema, remote: Any
    ) -> None:
        remote_size = int(field(remote, "size", 0) or 0)
        if local.size <= remote_size:
            return

        logger.info(
            "Expanding column [%s] size from %s to %s...",
            local.key,
            remote_size,
            local.size,
        )
        self._update(
            local.key,
            table_id,
            lambda: self._tables.update_string_column(
                database_id=database_id,
                table_id=table_id,
                key=local.key,
                required=local.required,
                default=local.default,
                size=local.size,
            ),
        )

    def _extend_enum(
        self, database_id: str, table_id: str, local: ColumnSchema, remote: Any
    ) -> None:
        remote_elements = list(field(remote, "elements") or [])
        new_elements = [e for e in local.elements if e not in remote_elements]
        if not new_elements:
            return

        logger.info(
            "Adding enum options to [%s]: %s", local.key, ", ".join(new_elements)
        )
        # The backend replaces the element list, so send old and new together.
        elements = remote_elements + new_elements
        self._update(
            local.key,
            table_id,
            lambda: self._tables.update_enum_column(
                database_id=database_id,
                table_id=table_id,
                key=local.key,
                elements=elements,
                required=local.required,
                default=local.default,
            ),
        )

    def _update(self, key: str, table_id: str, operation: Callable) -> None:
        try:
            self._retry(operation)
        except AppwriteException as e:
            raise AppwriteError(
                f"Failed to update column '{key}' in table '{table_id}'"
            ) from e
