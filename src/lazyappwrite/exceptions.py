"""Exception classes for lazyappwrite."""

from typing import Optional

from lazyappwrite.types import ErrorType

__all__ = [
    "LazyError",
    "ValidationError",
    "SchemaLoadError",
    "ConfigError",
    "SyncStageError",
    "AppwriteError",
    "PollTimeoutError",
    "AbortError",
]


class LazyError(Exception):
    """Base exception for lazyappwrite."""

    error_type: ErrorType = ErrorType.APPWRITE

    @property
    def cause(self) -> Optional[BaseException]:
        """The backend or lower-level error this one was raised from."""
        return self.__cause__


class ValidationError(LazyError):
    """Declared schema conflicts with remote structure, or is itself invalid."""

    error_type = ErrorType.VALIDATION


class SchemaLoadError(ValidationError):
    """Error loading table declaration files."""


class ConfigError(LazyError):
    """Invalid connection settings, credentials, or a failed sync stage."""

    error_type = ErrorType.CONFIG


class SyncStageError(ConfigError):
    """A synchronization stage (database, table, columns, indexes) failed."""

    def __init__(self, stage: str, message: str):
        self.stage = stage
        super().__init__(message)


class AppwriteError(LazyError):
    """A backend error not otherwise classified."""

    error_type = ErrorType.APPWRITE

    @property
    def code(self) -> Optional[int]:
        """Status code of the underlying backend error, if any."""
        return getattr(self.__cause__, "code", None)


class PollTimeoutError(LazyError):
    """A polled resource never reached a terminal state."""

    error_type = ErrorType.TIMEOUT


class AbortError(LazyError):
    """An irrecoverable combination of failures."""

    error_type = ErrorType.ABORT
