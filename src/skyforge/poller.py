"""
Submitting a mutating call and waiting for its long-running operation.

The wait is an explicit state machine:

    REQUESTED --submitted--> POLLING --pending--> POLLING
                                     --succeeded--> DONE
                                     --errored--> FAILED
                                     --deadline--> TIMED_OUT

Only the submission is retried (on rate limits). Once the provider has
accepted the call the operation is polled until it is done or the timeout
elapses. A timeout stops the wait; it does not cancel the remote operation.
"""

import time
from collections.abc import Callable
from enum import Enum
from typing import Protocol

from tenacity import Retrying, retry_if_exception_type, stop_after_attempt

from .core import DEFAULT_POLL_INTERVAL, SUBMIT_WAIT
from .errors import OperationFailedError, OperationTimeoutError, RateLimitedError
from .logger import logger


class OperationHandle(Protocol):
    """A provider-issued reference to a long-running operation."""

    @property
    def name(self) -> str: ...

    def done(self) -> bool:
        """Refreshes the operation and reports whether it finished."""
        ...

    def error(self) -> Exception | None:
        """The provider error of a finished operation, if any."""
        ...


class OperationState(str, Enum):
    REQUESTED = "requested"
    POLLING = "polling"
    DONE = "done"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class OperationEvent(str, Enum):
    SUBMITTED = "submitted"
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    ERRORED = "errored"
    DEADLINE = "deadline"


TRANSITIONS: dict[tuple[OperationState, OperationEvent], OperationState] = {
    (OperationState.REQUESTED, OperationEvent.SUBMITTED): OperationState.POLLING,
    (OperationState.POLLING, OperationEvent.PENDING): OperationState.POLLING,
    (OperationState.POLLING, OperationEvent.SUCCEEDED): OperationState.DONE,
    (OperationState.POLLING, OperationEvent.ERRORED): OperationState.FAILED,
    (OperationState.POLLING, OperationEvent.DEADLINE): OperationState.TIMED_OUT,
}

TERMINAL_STATES = frozenset(
    {OperationState.DONE, OperationState.FAILED, OperationState.TIMED_OUT}
)


def advance(state: OperationState, event: OperationEvent) -> OperationState:
    """Looks up the next state; unknown transitions are programming errors."""
    try:
        return TRANSITIONS[(state, event)]
    except KeyError:
        raise RuntimeError(
            f"Invalid operation transition: {state.value} on {event.value}"
        ) from None


class OperationPoller:
    """
    Runs one submit-and-wait cycle at a time on the calling thread.

    `sleep` and `clock` are injectable so tests do not have to wait.
    """

    def __init__(
        self,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.poll_interval = poll_interval
        self._sleep = sleep
        self._clock = clock
        self.state = OperationState.REQUESTED

    def _fire(self, event: OperationEvent) -> None:
        self.state = advance(self.state, event)

    def submit(
        self, call: Callable[[], OperationHandle], max_attempts: int
    ) -> OperationHandle:
        """Submits the call, retrying rate-limited attempts with backoff."""
        retrying = Retrying(
            stop=stop_after_attempt(max_attempts),
            wait=SUBMIT_WAIT,
            retry=retry_if_exception_type(RateLimitedError),
            sleep=self._sleep,
            reraise=True,
        )
        return retrying(call)

    def wait(
        self, handle: OperationHandle, description: str, timeout_minutes: float
    ) -> None:
        """Polls the handle until it is done or `timeout_minutes` elapse."""
        deadline = self._clock() + timeout_minutes * 60

        while self.state not in TERMINAL_STATES:
            if handle.done():
                error = handle.error()
                if error is not None:
                    self._fire(OperationEvent.ERRORED)
                    logger.error(f"Operation {handle.name} failed: {error}")
                    raise OperationFailedError(description, error)
                self._fire(OperationEvent.SUCCEEDED)
                break

            if self._clock() >= deadline:
                self._fire(OperationEvent.DEADLINE)
                logger.warning(
                    f"Gave up waiting on {handle.name} after {timeout_minutes} minutes"
                )
                raise OperationTimeoutError(description, timeout_minutes)

            self._fire(OperationEvent.PENDING)
            logger.debug(f"{description}: operation {handle.name} still running")
            self._sleep(self.poll_interval)

    def run(
        self,
        call: Callable[[], OperationHandle],
        description: str,
        timeout_minutes: float,
        max_attempts: int,
    ) -> OperationHandle:
        self.state = OperationState.REQUESTED
        handle = self.submit(call, max_attempts)
        self._fire(OperationEvent.SUBMITTED)
        logger.info(f"{description}: waiting on operation {handle.name}")
        self.wait(handle, description, timeout_minutes)
        return handle


def submit_and_wait(
    call: Callable[[], OperationHandle],
    description: str,
    timeout_minutes: float,
    max_attempts: int,
    poller: OperationPoller | None = None,
) -> None:
    """
    Submits a mutating call once and blocks until its operation finishes.

    Raises OperationFailedError (carrying the provider error verbatim) or
    OperationTimeoutError (carrying `description`). RateLimitedError escapes
    only once `max_attempts` submissions were throttled.
    """
    poller = poller or OperationPoller()
    poller.run(call, description, timeout_minutes, max_attempts)
