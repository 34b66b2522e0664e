import pytest

from skyforge.errors import (
    OperationFailedError,
    OperationTimeoutError,
    ProviderError,
    RateLimitedError,
)
from skyforge.poller import (
    OperationEvent,
    OperationPoller,
    OperationState,
    advance,
    submit_and_wait,
)


class FakeHandle:
    """Reports done after `polls` calls to done()."""

    def __init__(self, polls=1, error=None):
        self.name = "operations/op-1"
        self.polls = polls
        self.calls = 0
        self._error = error

    def done(self):
        self.calls += 1
        return self.calls >= self.polls

    def error(self):
        return self._error


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def _poller(clock, interval=10.0):
    return OperationPoller(poll_interval=interval, sleep=clock.sleep, clock=clock)


def test_success_after_polling():
    clock = FakeClock()
    poller = _poller(clock)
    handle = FakeHandle(polls=3)

    result = poller.run(lambda: handle, "creating cluster", 10, 3)

    assert result is handle
    assert poller.state is OperationState.DONE
    assert clock.sleeps == [10.0, 10.0]


def test_failure_surfaces_provider_error():
    clock = FakeClock()
    poller = _poller(clock)
    cause = ProviderError("quota exceeded")
    handle = FakeHandle(polls=1, error=cause)

    with pytest.raises(OperationFailedError) as excinfo:
        poller.run(lambda: handle, "creating cluster", 10, 3)

    assert excinfo.value.error is cause
    assert "quota exceeded" in str(excinfo.value)
    assert poller.state is OperationState.FAILED


def test_timeout_carries_description():
    clock = FakeClock()
    poller = _poller(clock, interval=60.0)
    handle = FakeHandle(polls=1000)

    with pytest.raises(OperationTimeoutError) as excinfo:
        poller.run(lambda: handle, "deleting Dataproc cluster", 5, 3)

    assert excinfo.value.description == "deleting Dataproc cluster"
    assert isinstance(excinfo.value, TimeoutError)
    assert poller.state is OperationState.TIMED_OUT
    # Five one-minute polls fit in the window
    assert len(clock.sleeps) == 5


def test_rate_limited_submission_is_retried():
    clock = FakeClock()
    poller = _poller(clock)
    handle = FakeHandle()
    attempts = []

    def call():
        attempts.append(1)
        if len(attempts) < 3:
            raise RateLimitedError("slow down")
        return handle

    poller.run(call, "creating cluster", 10, 3)

    assert len(attempts) == 3
    assert poller.state is OperationState.DONE


def test_rate_limit_gives_up_after_max_attempts():
    clock = FakeClock()
    attempts = []

    def call():
        attempts.append(1)
        raise RateLimitedError("slow down")

    with pytest.raises(RateLimitedError):
        submit_and_wait(call, "updating cluster", 5, 2, poller=_poller(clock))

    assert len(attempts) == 2


def test_other_submission_errors_not_retried():
    attempts = []

    def call():
        attempts.append(1)
        raise ProviderError("bad request")

    with pytest.raises(ProviderError):
        submit_and_wait(call, "creating cluster", 10, 3, poller=_poller(FakeClock()))

    assert len(attempts) == 1


def test_poller_is_reusable():
    clock = FakeClock()
    poller = _poller(clock)

    poller.run(lambda: FakeHandle(), "first", 10, 3)
    poller.run(lambda: FakeHandle(), "second", 10, 3)

    assert poller.state is OperationState.DONE


def test_invalid_transition():
    with pytest.raises(RuntimeError, match="Invalid operation transition"):
        advance(OperationState.DONE, OperationEvent.PENDING)


def test_transitions():
    state = advance(OperationState.REQUESTED, OperationEvent.SUBMITTED)
    assert state is OperationState.POLLING
    assert advance(state, OperationEvent.PENDING) is OperationState.POLLING
    assert advance(state, OperationEvent.DEADLINE) is OperationState.TIMED_OUT
