"""Helpers for reading backend responses and classifying backend errors.

SDK responses may arrive as plain dicts or as model objects, so every read
goes through ``field``.
"""

from typing import Any, Optional

from lazyappwrite.types import ColumnType

NOT_FOUND = 404
CONFLICT = 409
RATE_LIMITED = 429

# Formats the backend stores as string columns.
_STRING_FORMATS = {"email", "url", "ip", "enum"}

_TYPE_ALIASES = {
    "double": ColumnType.FLOAT.value,
    "linestring": ColumnType.LINE.value,
}


def field(obj: Any, name: str, default: Any = None) -> Any:
    """Safely get a value from a response, supporting dicts and models.

    ``$``-prefixed keys such as ``$permissions`` are looked up without the
    prefix on model objects.
    """
    if obj is None:
        return default
    if hasattr(obj, "get"):
        return obj.get(name, default)
    return getattr(obj, name.lstrip("$"), default)


def status_code(error: BaseException) -> Optional[int]:
    """Return the HTTP-like status code carried by an error, if any."""
    code = getattr(error, "code", None)
    if code is None:
        response = getattr(error, "response", None)
        if isinstance(response, dict):
            code = response.get("code")
    try:
        return int(code) if code else None
    except (TypeError, ValueError):
        return None


def is_not_found(error: BaseException) -> bool:
    return status_code(error) == NOT_FOUND


def is_conflict(error: BaseException) -> bool:
    return status_code(error) == CONFLICT


def is_retryable(error: BaseException) -> bool:
    """Rate limits, server errors and code-less (network) faults are retryable."""
    code = status_code(error)
    if code is None:
        return True
    return code == RATE_LIMITED or 500 <= code < 600


def remote_kind(column: Any) -> str:
    """Normalise a backend column description to a ColumnType value.

    The backend reports email/url/ip/enum columns as ``string`` with a
    ``format``, floats as ``double`` and lines as ``linestring``.
    """
    kind = str(field(column, "type", "") or "").lower()
    fmt = str(field(column, "format", "") or "").lower()
    if kind == ColumnType.STRING.value and fmt in _STRING_FORMATS:
        return fmt
    return _TYPE_ALIASES.get(kind, kind)


def items(response: Any, name: str) -> list:
    """Return the list stored under ``name`` in a list response."""
    return list(field(response, name, None) or [])
