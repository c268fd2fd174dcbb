"""Shared test helpers for lazyappwrite tests."""

import threading
import time
from collections import defaultdict
from typing import Any, Optional

from appwrite.exception import AppwriteException

from lazyappwrite.config import Config, SyncSettings
from lazyappwrite.schema.models import (
    EnumColumn,
    IndexSchema,
    IntegerColumn,
    StringColumn,
    TableSchema,
)
from lazyappwrite.sync.guard import SyncState
from lazyappwrite.sync.orchestrator import SchemaSync
from lazyappwrite.types import IndexType


def not_found(message: str = "Not found") -> AppwriteException:
    return AppwriteException(message, 404, "not_found")


def conflict(message: str = "Already exists") -> AppwriteException:
    return AppwriteException(message, 409, "conflict")


def api_error(code: Optional[int], message: str = "Backend error") -> AppwriteException:
    return AppwriteException(message, code)


# How the backend describes each declared kind.
_REMOTE_TYPES = {
    "string": ("string", None),
    "integer": ("integer", None),
    "float": ("double", None),
    "boolean": ("boolean", None),
    "email": ("string", "email"),
    "url": ("string", "url"),
    "ip": ("string", "ip"),
    "datetime": ("datetime", None),
    "enum": ("string", "enum"),
    "point": ("point", None),
    "line": ("linestring", None),
    "polygon": ("polygon", None),
    "relationship": ("relationship", None),
}


def remote_column(kind: str, key: str, status: str = "available", **extra: Any) -> dict:
    """Build a column dict shaped like a backend response."""
    remote_type, fmt = _REMOTE_TYPES[kind]
    column = {
        "key": key,
        "type": remote_type,
        "status": status,
        "required": False,
        "array": False,
    }
    if fmt:
        column["format"] = fmt
    column.update(extra)
    return column


class FakeTablesDB:
    """In-memory stand-in for the SDK's TablesDB service.

    Records every call in ``calls``. Errors queued in ``failures[method]``
    are raised (one per call) before the method does anything. New columns
    stay ``processing`` for ``provision_polls`` get_column calls.
    """

    def __init__(self, provision_polls: int = 0, create_delay: float = 0.0) -> None:
        self._lock = threading.Lock()
        self.calls: list[tuple[str, dict]] = []
        self.failures: dict[str, list[Exception]] = defaultdict(list)
        self.provision_polls = provision_polls
        self.create_delay = create_delay
        self.databases: dict[str, dict] = {}
        self.tables: dict[tuple[str, str], dict] = {}
        self.columns: dict[tuple[str, str], dict[str, dict]] = defaultdict(dict)
        self.indexes: dict[tuple[str, str], dict[str, dict]] = defaultdict(dict)
        self.rows: dict[tuple[str, str], dict[str, dict]] = defaultdict(dict)
        self._polls: dict[tuple[str, str, str], int] = defaultdict(int)

    def _record(self, method: str, **params: Any) -> None:
        with self._lock:
            self.calls.append((method, params))
            queued = self.failures.get(method)
            error = queued.pop(0) if queued else None
        if error is not None:
            raise error

    def calls_to(self, method: str) -> list[dict]:
        return [params for name, params in self.calls if name == method]

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    # Databases

    def list(self, queries=None):
        self._record("list", queries=queries)
        return {"total": len(self.databases), "databases": list(self.databases.values())}

    def get(self, database_id):
        self._record("get", database_id=database_id)
        if database_id not in self.databases:
            raise not_found("Database not found")
        return self.databases[database_id]

    def create(self, database_id, name, enabled=None):
        self._record("create", database_id=database_id, name=name)
        with self._lock:
            if database_id in self.databases:
                raise conflict("Database already exists")
            self.databases[database_id] = {"$id": database_id, "name": name}
            return self.databases[database_id]

    # Tables

    def get_table(self, database_id, table_id):
        self._record("get_table", database_id=database_id, table_id=table_id)
        table = self.tables.get((database_id, table_id))
        if table is None:
            raise not_found("Table not found")
        return table

    def create_table(self, database_id, table_id, name, permissions=None,
                     row_security=None, enabled=None):
        self._record(
            "create_table",
            database_id=database_id,
            table_id=table_id,
            name=name,
            permissions=permissions,
            row_security=row_security,
            enabled=enabled,
        )
        if self.create_delay:
            time.sleep(self.create_delay)
        with self._lock:
            if (database_id, table_id) in self.tables:
                raise conflict("Table already exists")
            self.tables[(database_id, table_id)] = {
                "$id": table_id,
                "name": name,
                "$permissions": list(permissions or []),
                "rowSecurity": bool(row_security),
                "enabled": True if enabled is None else enabled,
            }
            return self.tables[(database_id, table_id)]

    def update_table(self, database_id, table_id, name, permissions=None,
                     row_security=None, enabled=None):
        self._record(
            "update_table",
            database_id=database_id,
            table_id=table_id,
            name=name,
            permissions=permissions,
            row_security=row_security,
            enabled=enabled,
        )
        table = self.tables[(database_id, table_id)]
        table["name"] = name
        if permissions is not None:
            table["$permissions"] = list(permissions)
        if row_security is not None:
            table["rowSecurity"] = row_security
        if enabled is not None:
            table["enabled"] = enabled
        return table

    # Columns

    def list_columns(self, database_id, table_id, queries=None):
        self._record("list_columns", database_id=database_id, table_id=table_id)
        columns = list(self.columns[(database_id, table_id)].values())
        return {"total": len(columns), "columns": columns}

    def get_column(self, database_id, table_id, key):
        self._record("get_column", database_id=database_id, table_id=table_id, key=key)
        column = self.columns[(database_id, table_id)].get(key)
        if column is None:
            raise not_found("Column not found")
        poll_key = (database_id, table_id, key)
        with self._lock:
            self._polls[poll_key] += 1
            if (
                column["status"] == "processing"
                and self._polls[poll_key] > self.provision_polls
            ):
                column["status"] = "available"
        return column

    def _create_column(self, method, kind, database_id, table_id, key, **params):
        self._record(method, database_id=database_id, table_id=table_id, key=key, **params)
        with self._lock:
            existing = self.columns[(database_id, table_id)]
            if key in existing:
                raise conflict("Column already exists")
            status = "processing" if self.provision_polls else "available"
            column = remote_column(kind, key, status=status)
            column.update(
                {k: v for k, v in params.items() if k in ("required", "array", "size", "elements")}
            )
            existing[key] = column
            return column

    def create_string_column(self, database_id, table_id, key, size, required,
                             default=None, array=None, encrypt=None):
        return self._create_column(
            "create_string_column", "string", database_id, table_id, key,
            size=size, required=required, default=default, array=array,
        )

    def create_integer_column(self, database_id, table_id, key, required,
                              min=None, max=None, default=None, array=None):
        return self._create_column(
            "create_integer_column", "integer", database_id, table_id, key,
            required=required, min=min, max=max, default=default, array=array,
        )

    def create_float_column(self, database_id, table_id, key, required,
                            min=None, max=None, default=None, array=None):
        return self._create_column(
            "create_float_column", "float", database_id, table_id, key,
            required=required, min=min, max=max, default=default, array=array,
        )

    def create_boolean_column(self, database_id, table_id, key, required,
                              default=None, array=None):
        return self._create_column(
            "create_boolean_column", "boolean", database_id, table_id, key,
            required=required, default=default, array=array,
        )

    def create_email_column(self, database_id, table_id, key, required,
                            default=None, array=None):
        return self._create_column(
            "create_email_column", "email", database_id, table_id, key,
            required=required, default=default, array=array,
        )

    def create_url_column(self, database_id, table_id, key, required,
                          default=None, array=None):
        return self._create_column(
            "create_url_column", "url", database_id, table_id, key,
            required=required, default=default, array=array,
        )

    def create_ip_column(self, database_id, table_id, key, required,
                         default=None, array=None):
        return self._create_column(
            "create_ip_column", "ip", database_id, table_id, key,
            required=required, default=default, array=array,
        )

    def create_datetime_column(self, database_id, table_id, key, required,
                               default=None, array=None):
        return self._create_column(
            "create_datetime_column", "datetime", database_id, table_id, key,
            required=required, default=default, array=array,
        )

    def create_enum_column(self, database_id, table_id, key, elements, required,
                           default=None, array=None):
        return self._create_column(
            "create_enum_column", "enum", database_id, table_id, key,
            elements=elements, required=required, default=default, array=array,
        )

    def create_point_column(self, database_id, table_id, key, required, default=None):
        return self._create_column(
            "create_point_column", "point", database_id, table_id, key,
            required=required, default=default,
        )

    def create_line_column(self, database_id, table_id, key, required, default=None):
        return self._create_column(
            "create_line_column", "line", database_id, table_id, key,
            required=required, default=default,
        )

    def create_polygon_column(self, database_id, table_id, key, required, default=None):
        return self._create_column(
            "create_polygon_column", "polygon", database_id, table_id, key,
            required=required, default=default,
        )

    def create_relationship_column(self, database_id, table_id, related_table_id, type,
                                   two_way=None, key=None, two_way_key=None,
                                   on_delete=None):
        return self._create_column(
            "create_relationship_column", "relationship", database_id, table_id, key,
            related_table_id=related_table_id, type=type, two_way=two_way,
            two_way_key=two_way_key, on_delete=on_delete,
        )

    def update_string_column(self, database_id, table_id, key, required, default,
                             size=None, new_key=None):
        self._record(
            "update_string_column", database_id=database_id, table_id=table_id,
            key=key, required=required, default=default, size=size,
        )
        column = self.columns[(database_id, table_id)][key]
        if size is not None:
            column["size"] = size
        return column

    def update_enum_column(self, database_id, table_id, key, elements, required,
                           default, new_key=None):
        self._record(
            "update_enum_column", database_id=database_id, table_id=table_id,
            key=key, elements=elements, required=required, default=default,
        )
        column = self.columns[(database_id, table_id)][key]
        column["elements"] = list(elements)
        return column

    # Indexes

    def list_indexes(self, database_id, table_id, queries=None):
        self._record("list_indexes", database_id=database_id, table_id=table_id)
        indexes = list(self.indexes[(database_id, table_id)].values())
        return {"total": len(indexes), "indexes": indexes}

    def create_index(self, database_id, table_id, key, type, columns,
                     orders=None, lengths=None):
        self._record(
            "create_index", database_id=database_id, table_id=table_id, key=key,
            type=type, columns=columns, orders=orders,
        )
        with self._lock:
            existing = self.indexes[(database_id, table_id)]
            if key in existing:
                raise conflict("Index already exists")
            existing[key] = {
                "key": key,
                "type": type,
                "status": "available",
                "columns": list(columns),
                "orders": list(orders or []),
            }
            return existing[key]

    def delete_index(self, database_id, table_id, key):
        self._record("delete_index", database_id=database_id, table_id=table_id, key=key)
        with self._lock:
            existing = self.indexes[(database_id, table_id)]
            if key not in existing:
                raise not_found("Index not found")
            del existing[key]
        return {}

    # Rows

    def create_row(self, database_id, table_id, row_id, data, permissions=None):
        self._record("create_row", database_id=database_id, table_id=table_id, row_id=row_id)
        if (database_id, table_id) not in self.tables:
            raise not_found("Table not found")
        row = {"$id": row_id, **data}
        self.rows[(database_id, table_id)][row_id] = row
        return row

    def list_rows(self, database_id, table_id, queries=None):
        self._record("list_rows", database_id=database_id, table_id=table_id, queries=queries)
        if (database_id, table_id) not in self.tables:
            raise not_found("Table not found")
        rows = list(self.rows[(database_id, table_id)].values())
        return {"total": len(rows), "rows": rows}

    def get_row(self, database_id, table_id, row_id):
        self._record("get_row", database_id=database_id, table_id=table_id, row_id=row_id)
        row = self.rows[(database_id, table_id)].get(row_id)
        if row is None:
            raise not_found("Row not found")
        return row

    def update_row(self, database_id, table_id, row_id, data=None, permissions=None):
        self._record("update_row", database_id=database_id, table_id=table_id, row_id=row_id)
        row = self.rows[(database_id, table_id)][row_id]
        row.update(data or {})
        return row

    def delete_row(self, database_id, table_id, row_id):
        self._record("delete_row", database_id=database_id, table_id=table_id, row_id=row_id)
        self.rows[(database_id, table_id)].pop(row_id, None)
        return {}


class SleepRecorder:
    """Injected in place of time.sleep; records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def make_settings(**overrides: Any) -> SyncSettings:
    """SyncSettings suitable for tests (small poll budget)."""
    values = {"poll_attempts": 5}
    values.update(overrides)
    return SyncSettings(**values)


def make_test_config(**overrides: Any) -> Config:
    values = {
        "endpoint": "https://appwrite.test/v1",
        "project_id": "proj",
        "api_key": "secret",
        "database_id": "main",
        "database_name": "Main",
        "sync": make_settings(),
    }
    values.update(overrides)
    return Config(**values)


def make_syncer(
    tables: FakeTablesDB,
    state: Optional[SyncState] = None,
    sleep: Optional[SleepRecorder] = None,
    **settings: Any,
) -> SchemaSync:
    return SchemaSync(
        tables,
        state=state if state is not None else SyncState(),
        settings=make_settings(**settings),
        sleep=sleep if sleep is not None else SleepRecorder(),
    )


def make_users_schema(**overrides: Any) -> TableSchema:
    """A small declaration touching strings, integers, enums and an index."""
    values = {
        "id": "users",
        "name": "Users",
        "columns": (
            StringColumn(key="name", size=100, required=True),
            IntegerColumn(key="age", min=0, max=150),
            EnumColumn(key="role", elements=("admin", "member"), default="member"),
        ),
        "indexes": (IndexSchema(key="idx_name", type=IndexType.KEY, columns=("name",)),),
        "permissions": ('read("any")',),
    }
    values.update(overrides)
    return TableSchema(**values)
