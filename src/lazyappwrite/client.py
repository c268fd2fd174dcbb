"""Entry points that build lazily-synced database handles from config."""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from appwrite.client import Client
from appwrite.services.tables_db import TablesDB

from lazyappwrite.backend.client import build_client
from lazyappwrite.config import Config
from lazyappwrite.database import LazyDatabase
from lazyappwrite.exceptions import ConfigError
from lazyappwrite.sync.guard import SyncGuard, SyncState
from lazyappwrite.sync.orchestrator import SchemaSync

__all__ = ["AdminContext", "create_admin_client", "configure_logging"]


def configure_logging(verbose: bool) -> None:
    """Progress messages are shown only in verbose mode; warnings always."""
    logging.getLogger("lazyappwrite").setLevel(
        logging.INFO if verbose else logging.WARNING
    )


@dataclass
class AdminContext:
    """Server-side handles sharing one sync engine and guard."""

    client: Client
    tables: Any
    syncer: SchemaSync
    guard: SyncGuard

    def get_database(
        self, database_id: str, database_name: Optional[str] = None
    ) -> LazyDatabase:
        return LazyDatabase(
            self.tables,
            database_id,
            database_name or database_id,
            self.syncer,
            self.guard,
        )


def create_admin_client(
    config: Config,
    *,
    state: Optional[SyncState] = None,
    tables: Any = None,
    sleep: Optional[Callable[[float], None]] = None,
) -> AdminContext:
    """Build an admin context with full permissions.

    Never expose the API key client-side. ``state`` defaults to the
    process-wide sync state.

    Raises:
        ConfigError: If the API key or project is missing.
    """
    if not config.api_key:
        raise ConfigError("Admin client requires a secret 'api_key'.")
    config.validate_for_connection()
    configure_logging(config.verbose)

    client = build_client(config)
    if tables is None:
        tables = TablesDB(client)

    sync_kwargs = {"sleep": sleep} if sleep is not None else {}
    syncer = SchemaSync(tables, state=state, settings=config.sync, **sync_kwargs)
    guard = SyncGuard(state, follower_retries=config.sync.follower_retries)
    return AdminContext(client=client, tables=tables, syncer=syncer, guard=guard)
