"""Table declaration classes.

Columns are a closed set of variants, one dataclass per kind family. Each
variant exposes a ``kind`` tag that the sync layer dispatches on.
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Optional, Union

from lazyappwrite.exceptions import ValidationError
from lazyappwrite.types import ColumnType, IndexType, OnDelete, RelationshipType

Coordinate = tuple[float, float]


def _check_default(column: Any) -> None:
    """A required column cannot also declare a default."""
    if column.required and column.default is not None:
        raise ValidationError(
            f"Column '{column.key}' is required and cannot declare a default value"
        )


def is_system_column(key: str) -> bool:
    """Backend-managed columns such as ``$createdAt`` are never declared."""
    return key.startswith("$")


def _freeze(obj: Any, name: str) -> None:
    value = getattr(obj, name)
    if value is not None and not isinstance(value, tuple):
        object.__setattr__(obj, name, tuple(value))


@dataclass(frozen=True)
class StringColumn:
    """String column. Size is the maximum length in characters."""

    kind: ClassVar[ColumnType] = ColumnType.STRING

    key: str
    size: int
    required: bool = False
    array: bool = False
    default: Optional[str] = None

    def __post_init__(self) -> None:
        if self.size <= 0:
            raise ValidationError(f"Column '{self.key}' size must be positive")
        _check_default(self)


@dataclass(frozen=True)
class IntegerColumn:
    kind: ClassVar[ColumnType] = ColumnType.INTEGER

    key: str
    required: bool = False
    array: bool = False
    default: Optional[int] = None
    min: Optional[int] = None
    max: Optional[int] = None

    def __post_init__(self) -> None:
        _check_default(self)


@dataclass(frozen=True)
class FloatColumn:
    kind: ClassVar[ColumnType] = ColumnType.FLOAT

    key: str
    required: bool = False
    array: bool = False
    default: Optional[float] = None
    min: Optional[float] = None
    max: Optional[float] = None

    def __post_init__(self) -> None:
        _check_default(self)


@dataclass(frozen=True)
class BooleanColumn:
    kind: ClassVar[ColumnType] = ColumnType.BOOLEAN

    key: str
    required: bool = False
    array: bool = False
    default: Optional[bool] = None

    def __post_init__(self) -> None:
        _check_default(self)


@dataclass(frozen=True)
class EmailColumn:
    kind: ClassVar[ColumnType] = ColumnType.EMAIL

    key: str
    required: bool = False
    array: bool = False
    default: Optional[str] = None

    def __post_init__(self) -> None:
        _check_default(self)


@dataclass(frozen=True)
class UrlColumn:
    kind: ClassVar[ColumnType] = ColumnType.URL

    key: str
    required: bool = False
    array: bool = False
    default: Optional[str] = None

    def __post_init__(self) -> None:
        _check_default(self)


@dataclass(frozen=True)
class IpColumn:
    kind: ClassVar[ColumnType] = ColumnType.IP

    key: str
    required: bool = False
    array: bool = False
    default: Optional[str] = None

    def __post_init__(self) -> None:
        _check_default(self)


@dataclass(frozen=True)
class DatetimeColumn:
    """Datetime column. Defaults are ISO 8601 strings."""

    kind: ClassVar[ColumnType] = ColumnType.DATETIME

    key: str
    required: bool = False
    array: bool = False
    default: Optional[str] = None

    def __post_init__(self) -> None:
        _check_default(self)


@dataclass(frozen=True)
class EnumColumn:
    kind: ClassVar[ColumnType] = ColumnType.ENUM

    key: str
    elements: tuple[str, ...]
    required: bool = False
    array: bool = False
    default: Optional[str] = None

    def __post_init__(self) -> None:
        _freeze(self, "elements")
        if not self.elements:
            raise ValidationError(f"Enum column '{self.key}' needs at least one element")
        if self.default is not None and self.default not in self.elements:
            raise ValidationError(
                f"Enum column '{self.key}' default {self.default!r} is not an element"
            )
        _check_default(self)


@dataclass(frozen=True)
class PointColumn:
    """Spatial point. Spatial columns are never arrays."""

    kind: ClassVar[ColumnType] = ColumnType.POINT

    key: str
    required: bool = False
    default: Optional[Coordinate] = None
    array: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        _check_default(self)


@dataclass(frozen=True)
class LineColumn:
    kind: ClassVar[ColumnType] = ColumnType.LINE

    key: str
    required: bool = False
    default: Optional[list[Coordinate]] = None
    array: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        _check_default(self)


@dataclass(frozen=True)
class PolygonColumn:
    kind: ClassVar[ColumnType] = ColumnType.POLYGON

    key: str
    required: bool = False
    default: Optional[list[list[Coordinate]]] = None
    array: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        _check_default(self)


@dataclass(frozen=True)
class RelationshipColumn:
    """Relationship to another table.

    Relationship columns never carry a default and are never arrays; the
    cardinality comes from ``relation_type``. ``required`` is kept for shape
    compatibility with the other variants.
    """

    kind: ClassVar[ColumnType] = ColumnType.RELATIONSHIP

    key: str
    related_table_id: str
    relation_type: RelationshipType
    on_delete: OnDelete = OnDelete.RESTRICT
    two_way: bool = False
    two_way_key: Optional[str] = None
    required: bool = False
    array: bool = field(default=False, init=False)
    default: None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "relation_type", RelationshipType(self.relation_type))
        object.__setattr__(self, "on_delete", OnDelete(self.on_delete))
        _check_default(self)


ColumnSchema = Union[
    StringColumn,
    IntegerColumn,
    FloatColumn,
    BooleanColumn,
    EmailColumn,
    UrlColumn,
    IpColumn,
    DatetimeColumn,
    EnumColumn,
    PointColumn,
    LineColumn,
    PolygonColumn,
    RelationshipColumn,
]

COLUMN_CLASSES: dict[ColumnType, type] = {
    cls.kind: cls
    for cls in (
        StringColumn,
        IntegerColumn,
        FloatColumn,
        BooleanColumn,
        EmailColumn,
        UrlColumn,
        IpColumn,
        DatetimeColumn,
        EnumColumn,
        PointColumn,
        LineColumn,
        PolygonColumn,
        RelationshipColumn,
    )
}


@dataclass(frozen=True)
class IndexSchema:
    """Index definition. Column order is significant for creation only."""

    key: str
    type: IndexType
    columns: tuple[str, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", IndexType(self.type))
        _freeze(self, "columns")
        if not self.columns:
            raise ValidationError(f"Index '{self.key}' must name at least one column")


@dataclass(frozen=True)
class TableSchema:
    """Table definition.

    ``permissions`` of None means "no permissions"; ``enabled`` of None means
    "leave whatever the backend has".
    """

    id: str
    name: str
    columns: tuple[ColumnSchema, ...] = ()
    indexes: tuple[IndexSchema, ...] = ()
    permissions: Optional[tuple[str, ...]] = None
    row_security: Optional[bool] = None
    enabled: Optional[bool] = None

    def __post_init__(self) -> None:
        _freeze(self, "columns")
        _freeze(self, "indexes")
        _freeze(self, "permissions")

        seen: set[str] = set()
        for col in self.columns:
            if col.key in seen:
                raise ValidationError(
                    f"Duplicate column key '{col.key}' in table '{self.id}'"
                )
            seen.add(col.key)

        index_keys: set[str] = set()
        for index in self.indexes:
            if index.key in index_keys:
                raise ValidationError(
                    f"Duplicate index key '{index.key}' in table '{self.id}'"
                )
            index_keys.add(index.key)
            unknown = [
                c for c in index.columns if c not in seen and not is_system_column(c)
            ]
            if unknown:
                raise ValidationError(
                    f"Index '{index.key}' in table '{self.id}' references "
                    f"undeclared column(s): {', '.join(unknown)}"
                )

    def get_column(self, key: str) -> Optional[ColumnSchema]:
        """Get a column by key."""
        for col in self.columns:
            if col.key == key:
                return col
        return None


@dataclass
class Schema:
    """A set of table declarations keyed by table id."""

    tables: dict[str, TableSchema]

    def get_table(self, table_id: str) -> Optional[TableSchema]:
        """Get a table by id."""
        return self.tables.get(table_id)

    def table_ids(self) -> set[str]:
        """Get all table ids."""
        return set(self.tables.keys())
