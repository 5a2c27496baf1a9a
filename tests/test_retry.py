import asyncio

import pytest

from skinmarket.services.retry import RetryPolicy, attempt_with_retry, linear_backoff


class Flaky:
    def __init__(self, failures, exc=RuntimeError):
        self.failures = failures
        self.exc = exc
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.exc(f"failure {self.calls}")
        return "ok"


def _run(fn, policy, should_retry=lambda e: True):
    delays = []

    async def sleep(delay):
        delays.append(delay)

    result = asyncio.run(attempt_with_retry(fn, policy, should_retry, sleep=sleep))
    return result, delays


def test_default_policy_makes_a_single_attempt():
    fn = Flaky(1)

    with pytest.raises(RuntimeError):
        _run(fn, RetryPolicy())

    assert fn.calls == 1


def test_retries_until_success_with_linear_backoff():
    fn = Flaky(2)

    result, delays = _run(fn, RetryPolicy(max_attempts=3, base_delay=5.0))

    assert result == "ok"
    assert fn.calls == 3
    assert delays == [5.0, 10.0]


def test_gives_up_after_max_attempts():
    fn = Flaky(5)

    with pytest.raises(RuntimeError, match="failure 3"):
        _run(fn, RetryPolicy(max_attempts=3, base_delay=1.0))

    assert fn.calls == 3


def test_non_retryable_errors_are_raised_immediately():
    fn = Flaky(1, exc=ValueError)

    with pytest.raises(ValueError):
        _run(fn, RetryPolicy(max_attempts=3), should_retry=lambda e: not isinstance(e, ValueError))

    assert fn.calls == 1


def test_custom_backoff():
    fn = Flaky(3)
    policy = RetryPolicy(max_attempts=4, base_delay=2.0, backoff=lambda n, base: base ** n)

    _, delays = _run(fn, policy)

    assert delays == [2.0, 4.0, 8.0]
    assert linear_backoff(3, 2.0) == 6.0
