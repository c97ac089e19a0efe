"""Polling primitive for bootstrap wait-conditions."""

import math
import time
from collections.abc import Callable
from typing import Any

from tenacity import RetryError, Retrying, retry_if_result, stop_after_attempt, stop_after_delay, wait_fixed

from vpsie_machine.core.errors import BootstrapTimeoutError
from vpsie_machine.core.logging import get_logger

logger = get_logger(__name__)


def max_polls(interval: float, timeout: float) -> int:
    """Number of polls that fit in a deadline.

    Args:
        interval: Seconds between polls
        timeout: Overall deadline in seconds

    Returns:
        At least one poll
    """
    return max(1, math.ceil(timeout / interval))


def wait_for(
    predicate: Callable[[], bool],
    *,
    interval: float,
    timeout: float,
    phase: Any,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Poll a predicate on a fixed interval until it returns True.

    The wait ends after ``timeout`` seconds of wall time or after
    ``ceil(timeout / interval)`` polls, whichever comes first.

    Args:
        predicate: Readiness check; exceptions it raises are not retried
        interval: Seconds between polls
        timeout: Overall deadline in seconds
        phase: Phase reported in the timeout error
        sleep: Sleep function

    Returns:
        Number of polls it took for the predicate to pass

    Raises:
        BootstrapTimeoutError: If the predicate never passed
    """
    polls = 0

    def _poll() -> bool:
        nonlocal polls
        polls += 1
        ready = predicate()
        logger.debug("Polled wait-condition", phase=getattr(phase, "value", phase), attempt=polls, ready=ready)
        return ready

    retrying = Retrying(
        retry=retry_if_result(lambda ready: not ready),
        wait=wait_fixed(interval),
        stop=stop_after_delay(timeout) | stop_after_attempt(max_polls(interval, timeout)),
        sleep=sleep,
    )

    try:
        retrying(_poll)
    except RetryError as e:
        raise BootstrapTimeoutError(phase, timeout) from e

    return polls
