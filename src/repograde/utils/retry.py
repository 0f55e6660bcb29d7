"""Bounded retry with exponential backoff for collaborator calls."""

import logging
from collections.abc import Callable

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from repograde.config import RetryConfig

logger = logging.getLogger(__name__)


def _log_retry(state: RetryCallState) -> None:
    exc = state.outcome.exception() if state.outcome else None
    logger.warning(
        "Attempt %d failed (%s), retrying",
        state.attempt_number,
        exc,
    )


def build_retrying(
    config: RetryConfig | None,
    is_transient: Callable[[BaseException], bool],
) -> Retrying:
    """Build a tenacity ``Retrying`` controller from configuration.

    Args:
        config: Retry policy (defaults apply when None)
        is_transient: Predicate selecting exceptions worth retrying

    Returns:
        Callable controller: ``retrying(fn, *args, **kwargs)``
    """
    config = config or RetryConfig()
    return Retrying(
        retry=retry_if_exception(is_transient),
        stop=stop_after_attempt(config.attempts),
        wait=wait_exponential(multiplier=1, min=config.min_wait, max=config.max_wait),
        before_sleep=_log_retry,
        reraise=True,
    )
