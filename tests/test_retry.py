import unittest

from hydrowatch.upstream.errors import UpstreamHttpError, UpstreamInvalidResponse, UpstreamTimeout, UpstreamUnavailable
from hydrowatch.upstream.retry import RetryPolicy, call_with_policy, exponential_backoff


class FlakyCall:
    def __init__(self, failures, result="ok"):
        self.failures = list(failures)
        self.result = result
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.failures:
            raise self.failures.pop(0)
        return self.result


class TestRetry(unittest.TestCase):
    def setUp(self):
        self.sleeps = []

    def test_exponential_backoff(self):
        backoff = exponential_backoff(1.0)
        self.assertEqual([backoff(n) for n in (1, 2, 3)], [1.0, 2.0, 4.0])

    def test_succeeds_on_third_attempt(self):
        call = FlakyCall([UpstreamTimeout("slow"), UpstreamHttpError(502, "bad gateway")])
        outcome = call_with_policy(call, RetryPolicy(max_attempts=3), sleep=self.sleeps.append)
        self.assertEqual(outcome.value, "ok")
        self.assertEqual(outcome.attempts, 3)
        self.assertEqual(self.sleeps, [1.0, 2.0])

    def test_gives_up_after_max_attempts(self):
        call = FlakyCall([UpstreamTimeout("slow")] * 5)
        with self.assertRaises(UpstreamUnavailable) as ctx:
            call_with_policy(call, RetryPolicy(max_attempts=3), sleep=self.sleeps.append)
        self.assertEqual(call.calls, 3)
        self.assertEqual(ctx.exception.attempts, 3)
        self.assertIn("Failed after 3 attempts", str(ctx.exception))
        self.assertIn("slow", ctx.exception.last_error)
        # no sleep after the final attempt
        self.assertEqual(len(self.sleeps), 2)

    def test_non_retryable_error_propagates_immediately(self):
        call = FlakyCall([UpstreamInvalidResponse("html page")])
        with self.assertRaises(UpstreamInvalidResponse):
            call_with_policy(call, RetryPolicy(max_attempts=3), sleep=self.sleeps.append)
        self.assertEqual(call.calls, 1)
        self.assertEqual(self.sleeps, [])

    def test_single_attempt_policy(self):
        call = FlakyCall([UpstreamTimeout("slow")])
        with self.assertRaises(UpstreamUnavailable):
            call_with_policy(call, RetryPolicy(max_attempts=1), sleep=self.sleeps.append)
        self.assertEqual(self.sleeps, [])

    def test_invalid_policy(self):
        with self.assertRaises(ValueError):
            RetryPolicy(max_attempts=0)


if __name__ == "__main__":
    unittest.main()
