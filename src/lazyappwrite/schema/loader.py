"""Load table declarations from YAML files."""

from pathlib import Path
from typing import Any

import yaml

from lazyappwrite.exceptions import SchemaLoadError, ValidationError
from lazyappwrite.schema.models import (
    COLUMN_CLASSES,
    ColumnSchema,
    IndexSchema,
    Schema,
    TableSchema,
)
from lazyappwrite.types import ColumnType, IndexType

VALID_TABLE_FIELDS = {
    "table",
    "name",
    "description",
    "columns",
    "indexes",
    "permissions",
    "row_security",
    "enabled",
}

VALID_COLUMN_FIELDS = {
    "key",
    "type",
    "required",
    "array",
    "default",
    "size",
    "min",
    "max",
    "elements",
    "related_table",
    "relation_type",
    "on_delete",
    "two_way",
    "two_way_key",
}

VALID_INDEX_FIELDS = {"key", "type", "columns"}

# Fields each column kind accepts on top of key/type/required/default.
_KIND_FIELDS: dict[ColumnType, set[str]] = {
    ColumnType.STRING: {"size", "array"},
    ColumnType.INTEGER: {"min", "max", "array"},
    ColumnType.FLOAT: {"min", "max", "array"},
    ColumnType.BOOLEAN: {"array"},
    ColumnType.EMAIL: {"array"},
    ColumnType.URL: {"array"},
    ColumnType.IP: {"array"},
    ColumnType.DATETIME: {"array"},
    ColumnType.ENUM: {"elements", "array"},
    ColumnType.POINT: set(),
    ColumnType.LINE: set(),
    ColumnType.POLYGON: set(),
    ColumnType.RELATIONSHIP: {
        "related_table",
        "relation_type",
        "on_delete",
        "two_way",
        "two_way_key",
    },
}


def load_schema(schema_path: Path) -> Schema:
    """Load declarations from a directory of YAML files or a single file."""
    if schema_path.is_file():
        return _load_single_file(schema_path)
    elif schema_path.is_dir():
        return _load_directory(schema_path)
    else:
        raise SchemaLoadError(f"Schema path does not exist: {schema_path}")


def _load_directory(directory: Path) -> Schema:
    """Load declarations from a directory of YAML files."""
    tables: dict[str, TableSchema] = {}
    for yaml_file in sorted(directory.glob("*.yaml")):
        table = _parse_table_yaml(yaml_file)
        if table.id in tables:
            raise SchemaLoadError(f"Duplicate table id '{table.id}' found in directory")
        tables[table.id] = table
    return Schema(tables=tables)


def _load_single_file(file_path: Path) -> Schema:
    """Load declarations from a single YAML file."""
    data = _read_yaml(file_path)

    if "tables" in data:
        tables: dict[str, TableSchema] = {}
        for table_data in data.get("tables", []):
            table = _parse_table_dict(table_data)
            if table.id in tables:
                raise SchemaLoadError(f"Duplicate table id '{table.id}' in file")
            tables[table.id] = table
        return Schema(tables=tables)
    else:
        table = _parse_table_dict(data)
        return Schema(tables={table.id: table})


def _parse_table_yaml(file_path: Path) -> TableSchema:
    """Parse a table declaration from a YAML file."""
    return _parse_table_dict(_read_yaml(file_path))


def _read_yaml(file_path: Path) -> dict:
    with open(file_path) as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise SchemaLoadError(f"Invalid YAML in {file_path}: {e}") from e
    if data is None:
        raise SchemaLoadError(f"Empty YAML file: {file_path}")
    if not isinstance(data, dict):
        raise SchemaLoadError(f"Expected a mapping at top level of {file_path}")
    return data


def _parse_table_dict(data: dict) -> TableSchema:
    """Parse a table declaration from a dictionary."""
    unknown_fields = set(data.keys()) - VALID_TABLE_FIELDS
    if unknown_fields:
        raise SchemaLoadError(
            f"Unknown field(s) in table definition: {', '.join(sorted(unknown_fields))}"
        )

    table_id = data.get("table")
    if not table_id:
        raise SchemaLoadError("Table definition missing 'table' field")

    columns = [_parse_column(table_id, col) for col in data.get("columns") or []]
    indexes = [_parse_index(table_id, idx) for idx in data.get("indexes") or []]

    permissions = data.get("permissions")
    try:
        return TableSchema(
            id=table_id,
            name=data.get("name") or table_id,
            columns=tuple(columns),
            indexes=tuple(indexes),
            permissions=tuple(permissions) if permissions is not None else None,
            row_security=data.get("row_security"),
            enabled=data.get("enabled"),
        )
    except ValidationError as e:
        raise SchemaLoadError(str(e)) from e


def _parse_column(table_id: str, data: dict) -> ColumnSchema:
    """Parse a column declaration from a dictionary."""
    unknown_fields = set(data.keys()) - VALID_COLUMN_FIELDS
    if unknown_fields:
        raise SchemaLoadError(
            f"Unknown field(s) in column definition: {', '.join(sorted(unknown_fields))}"
        )

    key = data.get("key")
    if not key:
        raise SchemaLoadError(f"Column definition in table '{table_id}' missing 'key' field")

    raw_type = data.get("type")
    if not raw_type:
        raise SchemaLoadError(f"Column '{key}' missing 'type' field")
    try:
        kind = ColumnType(str(raw_type).lower())
    except ValueError:
        raise SchemaLoadError(f"Column '{key}' has unknown type '{raw_type}'") from None

    extra = set(data.keys()) - {"key", "type", "required", "default"} - _KIND_FIELDS[kind]
    if extra:
        raise SchemaLoadError(
            f"Field(s) not valid for {kind.value} column '{key}': "
            f"{', '.join(sorted(extra))}"
        )

    kwargs: dict[str, Any] = {
        "key": key,
        "required": bool(data.get("required", False)),
    }
    if "array" in data:
        kwargs["array"] = bool(data["array"])

    if kind is ColumnType.RELATIONSHIP:
        if not data.get("related_table") or not data.get("relation_type"):
            raise SchemaLoadError(
                f"Relationship column '{key}' needs 'related_table' and 'relation_type'"
            )
        kwargs["related_table_id"] = data["related_table"]
        kwargs["relation_type"] = data["relation_type"]
        for name in ("on_delete", "two_way", "two_way_key"):
            if name in data:
                kwargs[name] = data[name]
    else:
        if "default" in data:
            kwargs["default"] = data["default"]
        if kind is ColumnType.STRING:
            if "size" not in data:
                raise SchemaLoadError(f"String column '{key}' missing 'size' field")
            kwargs["size"] = int(data["size"])
        elif kind is ColumnType.ENUM:
            kwargs["elements"] = tuple(str(e) for e in data.get("elements") or [])
        elif kind in (ColumnType.INTEGER, ColumnType.FLOAT):
            for name in ("min", "max"):
                if name in data:
                    kwargs[name] = data[name]

    cls = COLUMN_CLASSES[kind]
    try:
        return cls(**kwargs)
    except (ValidationError, ValueError) as e:
        raise SchemaLoadError(f"Invalid column '{key}' in table '{table_id}': {e}") from e


def _parse_index(table_id: str, data: dict) -> IndexSchema:
    """Parse an index declaration from a dictionary."""
    unknown_fields = set(data.keys()) - VALID_INDEX_FIELDS
    if unknown_fields:
        raise SchemaLoadError(
            f"Unknown field(s) in index definition: {', '.join(sorted(unknown_fields))}"
        )

    key = data.get("key")
    if not key:
        raise SchemaLoadError(f"Index definition in table '{table_id}' missing 'key' field")

    try:
        index_type = IndexType(str(data.get("type", "key")).lower())
    except ValueError:
        raise SchemaLoadError(
            f"Index '{key}' has unknown type '{data.get('type')}'"
        ) from None

    try:
        return IndexSchema(
            key=key, type=index_type, columns=tuple(data.get("columns") or [])
        )
    except ValidationError as e:
        raise SchemaLoadError(str(e)) from e
