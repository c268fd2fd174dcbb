"""Poll a column's provisioning status until it is usable."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

from appwrite.exception import AppwriteException
from tenacity import RetryError, Retrying, retry_if_result, stop_after_attempt, wait_fixed

from lazyappwrite.backend.utils import field, is_not_found
from lazyappwrite.exceptions import AppwriteError, PollTimeoutError
from lazyappwrite.types import ColumnStatus

__all__ = ["await_column_ready"]

logger = logging.getLogger(__name__)


def await_column_ready(
    tables: Any,
    database_id: str,
    table_id: str,
    key: str,
    *,
    attempts: int = 30,
    interval: float = 0.2,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Block until column ``key`` reports status ``available``.

    A 404 while polling means the column has not propagated yet and is
    retried like ``processing``. Any other backend error aborts at once.

    Raises:
        AppwriteError: If the column reports ``failed`` or the backend errors.
        PollTimeoutError: If ``attempts`` polls pass without a terminal status.
    """

    def check() -> Optional[str]:
        try:
            column = tables.get_column(
                database_id=database_id, table_id=table_id, key=key
            )
        except AppwriteException as e:
            if is_not_found(e):
                return None
            raise AppwriteError(f"Failed to read status of column '{key}'") from e

        status = field(column, "status")
        if status == ColumnStatus.FAILED.value:
            raise AppwriteError(
                f"Column '{key}' in table '{table_id}' failed to create (status: failed)"
            )
        return status

    retrying = Retrying(
        stop=stop_after_attempt(attempts),
        wait=wait_fixed(interval),
        retry=retry_if_result(lambda status: status != ColumnStatus.AVAILABLE.value),
        sleep=sleep,
    )
    try:
        retrying(check)
    except RetryError as e:
        raise PollTimeoutError(
            f"Timeout: column '{key}' in table '{table_id}' stuck in processing "
            f"after {attempts} checks"
        ) from e
    logger.debug("Column [%s] is available", key)
