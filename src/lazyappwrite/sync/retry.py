"""Exponential backoff around remote mutations."""

from __future__ import annotations

import logging
import time
from typing import Callable, TypeVar

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from lazyappwrite.backend.utils import is_retryable
from lazyappwrite.exceptions import LazyError

__all__ = ["with_retry", "should_retry"]

logger = logging.getLogger(__name__)

T = TypeVar("T")


def should_retry(error: BaseException) -> bool:
    """Retry backend faults only; our own typed errors are final."""
    if not isinstance(error, Exception) or isinstance(error, LazyError):
        return False
    return is_retryable(error)


def with_retry(
    operation: Callable[[], T],
    max_retries: int = 3,
    initial_delay: float = 0.5,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run ``operation``, retrying on 429, 5xx, or code-less failures.

    The delay doubles after every retry (0.5s, 1s, 2s with the defaults).
    Once ``max_retries`` are spent the last error is raised unchanged; any
    other status code fails immediately.
    """
    retrying = Retrying(
        stop=stop_after_attempt(max_retries + 1),
        wait=wait_exponential(multiplier=initial_delay, exp_base=2),
        retry=retry_if_exception(should_retry),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        sleep=sleep,
        reraise=True,
    )
    return retrying(operation)
