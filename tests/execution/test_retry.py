"""Tests for retry strategies and RetryContext."""

import pytest

from splscan.core.errors import SubmissionRejected, TransportError
from splscan.execution.retry import ExponentialBackoff, RetryContext


class Flaky:
    """Callable that raises each scripted error, then returns ``value``."""

    def __init__(self, errors, value="ok"):
        self.errors = list(errors)
        self.value = value
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.value


class TestExponentialBackoff:
    def test_delays_double(self):
        strategy = ExponentialBackoff(base_delay=0.25, multiplier=2.0)
        assert [strategy.next_delay(i) for i in range(3)] == [0.25, 0.5, 1.0]

    def test_delay_capped(self):
        strategy = ExponentialBackoff(base_delay=1.0, max_delay=3.0)
        assert strategy.next_delay(10) == 3.0

    def test_jitter_stays_in_range(self):
        strategy = ExponentialBackoff(base_delay=1.0, jitter=True, jitter_range=0.25)
        for _ in range(50):
            assert 0.75 <= strategy.next_delay(0) <= 1.25

    def test_attempt_budget(self):
        strategy = ExponentialBackoff(max_attempts=3)
        assert strategy.should_retry(2, TransportError("x")) is True
        assert strategy.should_retry(3, TransportError("x")) is False

    def test_restricted_error_types(self):
        strategy = ExponentialBackoff(retryable_errors=(TransportError,))
        assert strategy.should_retry(1, TransportError("x")) is True
        assert strategy.should_retry(1, ConnectionError()) is False

    def test_falls_back_to_retryable_flag(self):
        strategy = ExponentialBackoff()
        assert strategy.should_retry(1, SubmissionRejected("x")) is False
        assert strategy.should_retry(1, ConnectionError()) is True


class TestRetryContext:
    def test_fail_fail_succeed(self):
        sleeps: list[float] = []
        func = Flaky([TransportError("a"), TransportError("b")])
        ctx = RetryContext(ExponentialBackoff(max_attempts=3), sleep=sleeps.append)
        assert ctx.run(func) == "ok"
        assert ctx.attempts == 3
        assert sleeps == [0.25, 0.5]

    def test_always_failing_stops_after_three(self):
        sleeps: list[float] = []
        func = Flaky([TransportError(str(i)) for i in range(10)])
        ctx = RetryContext(ExponentialBackoff(max_attempts=3), sleep=sleeps.append)
        with pytest.raises(TransportError, match="2"):
            ctx.run(func)
        assert func.calls == 3
        assert len(ctx.errors) == 3
        assert sleeps == [0.25, 0.5]

    def test_non_retryable_raises_immediately(self):
        func = Flaky([SubmissionRejected("no")])
        ctx = RetryContext(ExponentialBackoff(max_attempts=3), sleep=lambda _: None)
        with pytest.raises(SubmissionRejected):
            ctx.run(func)
        assert func.calls == 1

    def test_on_retry_callback(self):
        seen = []
        func = Flaky([TransportError("a")])
        ctx = RetryContext(
            ExponentialBackoff(),
            on_retry=lambda attempt, error, delay: seen.append((attempt, str(error), delay)),
            sleep=lambda _: None,
        )
        ctx.run(func)
        assert seen == [(1, "a", 0.25)]
