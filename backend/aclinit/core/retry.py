# aclinit/core/retry.py
"""
Retry loop used by every step of the ACL init run.

An attempt is an async callable. Whatever it returns is a success; whatever it
raises is handed to a classifier which decides, via an explicit AttemptResult,
whether the loop keeps going or stops for good. The driver itself has no
knowledge of Consul.
"""
import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from .errors import ACLInitError

logger = logging.getLogger("aclinit")


class Outcome(str, enum.Enum):
    SUCCESS = "success"
    RETRY = "retry"
    FATAL = "fatal"


@dataclass
class AttemptResult:
    """
    Tagged result of one attempt.

    - SUCCESS: value holds the attempt's return value
    - RETRY: error is logged and the attempt is run again
    - FATAL: error is permanent and surfaced to the caller
    """
    outcome: Outcome
    value: Any = None
    error: Optional[BaseException] = None

    @classmethod
    def success(cls, value: Any = None) -> "AttemptResult":
        return cls(Outcome.SUCCESS, value=value)

    @classmethod
    def retry(cls, error: BaseException) -> "AttemptResult":
        return cls(Outcome.RETRY, error=error)

    @classmethod
    def fatal(cls, error: BaseException) -> "AttemptResult":
        return cls(Outcome.FATAL, error=error)

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.SUCCESS

    def unwrap(self) -> Any:
        """Return the value, or raise the carried error for a fatal result."""
        if self.outcome is Outcome.FATAL and self.error is not None:
            raise self.error
        return self.value


Attempt = Callable[[], Awaitable[Any]]
Classifier = Callable[[Exception], AttemptResult]


def retry_always(err: Exception) -> AttemptResult:
    """Default classifier: every failure is transient."""
    return AttemptResult.retry(err)


class RetryDriver:
    """Runs an attempt until it succeeds or is classified as fatal."""

    def __init__(
        self,
        interval: float = 1.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.interval = interval
        self._sleep = sleep

    async def run(
        self,
        description: str,
        attempt: Attempt,
        classify: Classifier = retry_always,
    ) -> AttemptResult:
        """
        Run `attempt` forever until it succeeds or `classify` says stop.

        Parameters:
        - description: Operation name shown in the log on every failure
        - attempt: Async callable performing one try
        - classify: Maps a raised exception to RETRY or FATAL (or SUCCESS)

        Returns:
        - AttemptResult with outcome SUCCESS or FATAL, never RETRY
        """
        while True:
            try:
                value = await attempt()
            except Exception as err:  # CancelledError/KeyboardInterrupt propagate
                result = classify(err)
            else:
                result = AttemptResult.success(value)

            if result.outcome is Outcome.SUCCESS:
                logger.info("[retry] Success: %s", description)
                return result
            if result.outcome is Outcome.FATAL:
                if isinstance(result.error, ACLInitError) and not result.error.step:
                    result.error.step = description
                logger.error("[retry] Failure: %s err=%s", description, result.error)
                return result

            logger.warning("[retry] Failure: %s err=%s", description, result.error)
            logger.info("[retry] Retrying in %ss", self.interval)
            await self._sleep(self.interval)
