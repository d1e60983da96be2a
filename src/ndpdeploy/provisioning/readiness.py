"""
Bounded readiness polling.

Probes are polled at a fixed interval for a bounded number of attempts.
Attempts are cheap and a predictable upper bound matters more than adaptive
pacing, so there is no backoff.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Callable, Union

import structlog
from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_result,
    stop_after_attempt,
    wait_fixed,
)

from ndpdeploy.core.errors import ReadinessTimeout

logger = structlog.get_logger()

DETAIL_LIMIT = 500


@dataclass(frozen=True)
class ProbeResult:
    """One observation of a service: ready or not, plus what was seen."""

    ready: bool
    detail: str = ""


Probe = Callable[[], Union[bool, ProbeResult]]


def attempts_for(timeout: float, interval: float) -> int:
    """Number of probe attempts that fit in ``timeout`` at ``interval``."""
    if interval <= 0:
        raise ValueError("interval must be positive")
    return max(1, math.ceil(timeout / interval))


class ReadinessWaiter:
    """Polls a probe until it reports ready or the attempt bound is reached."""

    def __init__(self, sleep: Callable[[float], None] = time.sleep) -> None:
        self._sleep = sleep

    def wait_until_ready(
        self,
        probe: Probe,
        timeout: float,
        interval: float,
        description: str = "service",
    ) -> ProbeResult:
        """
        Block until ``probe`` succeeds.

        Args:
            probe: Callable returning a bool or a ProbeResult
            timeout: Upper bound on total waiting, in seconds
            interval: Fixed pause between attempts, in seconds
            description: Name used in logs and errors

        Returns:
            The successful observation

        Raises:
            ReadinessTimeout: If no attempt succeeded, with the last detail
        """
        attempts = attempts_for(timeout, interval)

        def log_attempt(retry_state: RetryCallState) -> None:
            observed = retry_state.outcome.result() if retry_state.outcome else None
            logger.info(
                "waiting_for_readiness",
                service=description,
                attempt=retry_state.attempt_number,
                max_attempts=attempts,
                status=observed.detail if observed else None,
            )

        retrying = Retrying(
            stop=stop_after_attempt(attempts),
            wait=wait_fixed(interval),
            retry=retry_if_result(lambda result: not result.ready),
            before_sleep=log_attempt,
            sleep=self._sleep,
        )

        try:
            result = retrying(_observe, probe)
        except RetryError as exc:
            last = exc.last_attempt.result()
            raise ReadinessTimeout(
                f"{description} did not become ready after {attempts} attempts",
                details={
                    "service": description,
                    "attempts": attempts,
                    "interval": interval,
                    "last_status": last.detail[-DETAIL_LIMIT:],
                },
            ) from None

        logger.info("service_ready", service=description, status=result.detail)
        return result


def _observe(probe: Probe) -> ProbeResult:
    outcome = probe()
    if isinstance(outcome, ProbeResult):
        return outcome
    return ProbeResult(ready=bool(outcome), detail="ready" if outcome else "not ready")
