"""
Async polling with exponential backoff.

Generic "wait until an async condition resolves" primitive used to wait on
long-running provider tasks. A check distinguishes three outcomes: still
pending (sleep and try again), done with a value, or a terminal failure
that must not be retried.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from pydantic import BaseModel, Field

from shared.errors import PollTimeoutError, ProviderTaskFailedError
from shared.logging import get_logger

logger = get_logger("polling")

T = TypeVar("T")


class PollConfig(BaseModel):
    """Backoff settings plus labels used only in diagnostics."""

    initial_interval: float = Field(default=10.0, ge=0)
    max_interval: float = Field(default=60.0, ge=0)
    backoff_multiplier: float = Field(default=2.0, ge=1)
    max_attempts: int = Field(default=30, ge=1)
    job_id: str = "unknown"
    job_type: str = "unknown"


@dataclass(frozen=True)
class PollResult(Generic[T]):
    """Outcome of one check() call."""

    done: bool = False
    value: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def pending(cls) -> "PollResult[T]":
        return cls()

    @classmethod
    def success(cls, value: T) -> "PollResult[T]":
        return cls(done=True, value=value)

    @classmethod
    def failure(cls, message: str) -> "PollResult[T]":
        return cls(error=message or "unknown error")

    @property
    def failed(self) -> bool:
        return self.error is not None


def backoff_intervals(config: PollConfig):
    """Yield successive sleep intervals: initial, then multiplied and capped."""
    interval = config.initial_interval
    while True:
        yield interval
        interval = min(interval * config.backoff_multiplier, config.max_interval)


async def poll_until_done(
    check: Callable[[], Awaitable[PollResult[T]]],
    config: PollConfig,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Call `check` until it resolves, sleeping with exponential backoff between calls.

    Exceptions raised by `check` itself (e.g. transport errors) propagate
    immediately; only the pending outcome is retried.

    Args:
        check: Async callable returning a PollResult
        config: Backoff configuration and diagnostic labels
        sleep: Awaitable sleep function (injectable for tests)

    Returns:
        The value carried by the first successful PollResult

    Raises:
        ProviderTaskFailedError: check() reported a terminal failure
        PollTimeoutError: max_attempts pending results in a row
    """
    start = time.monotonic()
    intervals = backoff_intervals(config)
    attempt = 0

    while attempt < config.max_attempts:
        attempt += 1

        logger.debug(
            "Polling",
            extra={"task_id": config.job_id, "job_type": config.job_type, "attempt": attempt}
        )

        try:
            result = await check()
        except Exception as e:
            logger.error(
                "Polling error",
                extra={
                    "task_id": config.job_id,
                    "job_type": config.job_type,
                    "attempt": attempt,
                    "error": str(e),
                }
            )
            raise

        if result.done:
            logger.info(
                "Poll complete",
                extra={
                    "task_id": config.job_id,
                    "job_type": config.job_type,
                    "total_attempts": attempt,
                    "total_time": round(time.monotonic() - start, 3),
                }
            )
            return result.value

        if result.failed:
            logger.error(
                "Poll failed",
                extra={
                    "task_id": config.job_id,
                    "job_type": config.job_type,
                    "attempt": attempt,
                    "error": result.error,
                }
            )
            raise ProviderTaskFailedError(
                f"Task {config.job_id} ({config.job_type}) failed: {result.error}",
                code="PROVIDER_TASK_FAILED"
            )

        if attempt < config.max_attempts:
            await sleep(next(intervals))

    elapsed = time.monotonic() - start
    logger.error(
        "Poll timeout",
        extra={
            "task_id": config.job_id,
            "job_type": config.job_type,
            "total_attempts": attempt,
            "total_time": round(elapsed, 3),
        }
    )
    raise PollTimeoutError(
        f"Task {config.job_id} ({config.job_type}) timed out after "
        f"{config.max_attempts} attempts ({round(elapsed)}s)",
        attempts=attempt,
        elapsed_seconds=elapsed,
        code="POLL_TIMEOUT"
    )
