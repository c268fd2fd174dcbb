"""Configuration management for lazyappwrite."""

import os
from dataclasses import dataclass, field
from typing import Optional

from lazyappwrite.exceptions import ConfigError

DEFAULT_ENDPOINT = "https://cloud.appwrite.io/v1"

_TRUTHY = {"1", "true", "yes", "on"}


def _parse_bool(value: Optional[str]) -> Optional[bool]:
    if value is None:
        return None
    return value.strip().lower() in _TRUTHY


@dataclass
class SyncSettings:
    """Timing and retry knobs for schema synchronization.

    Delays are in seconds.
    """

    max_retries: int = 3
    initial_delay: float = 0.5
    poll_interval: float = 0.2
    poll_attempts: int = 30
    column_pacing: float = 0.1
    follower_retries: int = 1


@dataclass
class Config:
    """Configuration for lazyappwrite."""

    endpoint: str = DEFAULT_ENDPOINT
    project_id: Optional[str] = None
    api_key: Optional[str] = None
    self_signed: bool = False
    verbose: bool = False
    database_id: Optional[str] = None
    database_name: Optional[str] = None
    schema_dir: str = "schema"
    sync: SyncSettings = field(default_factory=SyncSettings)

    @classmethod
    def from_env(
        cls,
        *,
        endpoint: Optional[str] = None,
        project_id: Optional[str] = None,
        api_key: Optional[str] = None,
        self_signed: Optional[bool] = None,
        verbose: Optional[bool] = None,
        database_id: Optional[str] = None,
        database_name: Optional[str] = None,
        schema_dir: Optional[str] = None,
    ) -> "Config":
        """Load configuration from env vars, with explicit overrides.

        Priority (highest to lowest):
        1. Explicit parameters (CLI args)
        2. Environment variables
        3. Defaults
        """

        def resolve(explicit, env_key, default=None):
            if explicit is not None:
                return explicit
            env_val = os.environ.get(env_key)
            if env_val is not None:
                return env_val
            return default

        def resolve_flag(explicit, env_key):
            if explicit is not None:
                return explicit
            return bool(_parse_bool(os.environ.get(env_key)))

        database_id = resolve(database_id, "LAZYAPPWRITE_DATABASE_ID")
        return cls(
            endpoint=resolve(endpoint, "APPWRITE_ENDPOINT", DEFAULT_ENDPOINT),
            project_id=resolve(project_id, "APPWRITE_PROJECT_ID"),
            api_key=resolve(api_key, "APPWRITE_API_KEY"),
            self_signed=resolve_flag(self_signed, "APPWRITE_SELF_SIGNED"),
            verbose=resolve_flag(verbose, "LAZYAPPWRITE_VERBOSE"),
            database_id=database_id,
            database_name=resolve(
                database_name, "LAZYAPPWRITE_DATABASE_NAME", database_id
            ),
            schema_dir=resolve(schema_dir, "LAZYAPPWRITE_SCHEMA_DIR", "schema"),
        )

    def validate_for_connection(self, *, require_api_key: bool = True) -> None:
        """Validate that everything needed to reach the backend is present.

        Raises:
            ConfigError: If endpoint, project or API key is missing.
        """
        _raise_if_missing(self._missing_connection_fields(require_api_key))

    def validate_for_sync(self) -> None:
        """Validate connection settings plus the target database.

        Raises:
            ConfigError: If any required field is missing.
        """
        missing = self._missing_connection_fields(require_api_key=True)
        if not self.database_id:
            missing.append(
                "database_id (use --database-id or LAZYAPPWRITE_DATABASE_ID)"
            )
        _raise_if_missing(missing)

    def _missing_connection_fields(self, require_api_key: bool) -> list[str]:
        missing = []
        if not self.endpoint:
            missing.append("endpoint (use --endpoint or APPWRITE_ENDPOINT)")
        if not self.project_id:
            missing.append("project_id (use --project-id or APPWRITE_PROJECT_ID)")
        if require_api_key and not self.api_key:
            missing.append("api_key (use APPWRITE_API_KEY)")
        return missing


def _raise_if_missing(missing: list[str]) -> None:
    if missing:
        raise ConfigError(
            "Missing required configuration:\n  - " + "\n  - ".join(missing)
        )
