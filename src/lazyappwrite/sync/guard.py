"""Process-wide sync state and the at-most-one-sync-per-table guard."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from typing import Callable, Optional

from lazyappwrite.exceptions import ConfigError, SyncStageError, ValidationError
from lazyappwrite.types import TableKey

__all__ = ["SyncState", "SyncGuard", "default_state"]

logger = logging.getLogger(__name__)


class SyncState:
    """Facts that hold for the lifetime of one process.

    Tables and databases are only ever added; nothing is evicted. A schema
    change therefore takes effect after a restart. Every mutation happens
    under ``lock``.
    """

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.verified: set[TableKey] = set()
        self.pending: dict[TableKey, Future] = {}
        self.connection_verified = False
        self.verified_databases: set[str] = set()

    def is_verified(self, key: TableKey) -> bool:
        with self.lock:
            return key in self.verified

    def mark_connection_verified(self) -> None:
        with self.lock:
            self.connection_verified = True

    def is_database_verified(self, database_id: str) -> bool:
        with self.lock:
            return database_id in self.verified_databases

    def mark_database_verified(self, database_id: str) -> None:
        with self.lock:
            self.verified_databases.add(database_id)


_default_state = SyncState()


def default_state() -> SyncState:
    """The state shared by every client built in this process."""
    return _default_state


def _root_cause(error: BaseException) -> BaseException:
    while isinstance(error, SyncStageError) and error.__cause__ is not None:
        error = error.__cause__
    return error


def _worth_leading_again(error: BaseException) -> bool:
    """Bad credentials and schema conflicts fail the same way every time."""
    return not isinstance(_root_cause(error), (ConfigError, ValidationError))


class SyncGuard:
    """Runs at most one synchronization per table key at a time.

    The first caller for an unverified key becomes the leader and runs the
    sync; concurrent callers for the same key wait on the leader's future.
    If the leader fails, each follower may take over as the new leader up
    to ``follower_retries`` times.
    """

    def __init__(
        self, state: Optional[SyncState] = None, follower_retries: int = 1
    ) -> None:
        self._state = state if state is not None else default_state()
        self._follower_retries = follower_retries

    @property
    def state(self) -> SyncState:
        return self._state

    def ensure_synced(self, key: TableKey, sync_fn: Callable[[], None]) -> None:
        """Make sure ``key`` has been synced once in this process.

        Raises whatever ``sync_fn`` raised when this caller led the sync, or
        the leader's error when a follower has no retries left.
        """
        retries_left = self._follower_retries
        while True:
            state = self._state
            with state.lock:
                if key in state.verified:
                    return
                future = state.pending.get(key)
                leader = future is None
                if leader:
                    future = Future()
                    state.pending[key] = future

            if leader:
                self._lead(key, future, sync_fn)
                return

            logger.info("Waiting for in-flight sync of table [%s]", key)
            try:
                future.result()
                return
            except Exception as e:
                if retries_left <= 0 or not _worth_leading_again(e):
                    raise
                retries_left -= 1
                logger.warning(
                    "Sync of table [%s] failed in another caller (%s). Retrying.",
                    key,
                    e,
                )

    def _lead(
        self, key: TableKey, future: Future, sync_fn: Callable[[], None]
    ) -> None:
        state = self._state
        try:
            sync_fn()
        except BaseException as e:
            with state.lock:
                state.pending.pop(key, None)
            future.set_exception(e)
            raise
        # One critical section: callers never see the key neither verified
        # nor in flight.
        with state.lock:
            state.verified.add(key)
            state.pending.pop(key, None)
        future.set_result(None)
