"""Sliding window behavior of the in-process limiter."""

from clamio.services.rate_limit_service import SlidingWindowRateLimiter


def test_window_slides():
    limiter = SlidingWindowRateLimiter()
    for t in (0.0, 1.0, 2.0):
        assert limiter.hit("ip", limit=3, window_seconds=10, now=t)
    assert not limiter.hit("ip", limit=3, window_seconds=10, now=5.0)

    # first hit leaves the window at t=10
    assert limiter.hit("ip", limit=3, window_seconds=10, now=10.5)
    assert not limiter.hit("ip", limit=3, window_seconds=10, now=10.6)


def test_rejected_hits_are_not_counted():
    limiter = SlidingWindowRateLimiter()
    assert limiter.hit("ip", limit=1, window_seconds=10, now=0.0)
    for t in (1.0, 2.0, 3.0):
        assert not limiter.hit("ip", limit=1, window_seconds=10, now=t)
    assert limiter.hit("ip", limit=1, window_seconds=10, now=10.1)


def test_keys_are_independent_and_reset_clears():
    limiter = SlidingWindowRateLimiter()
    assert limiter.hit("a", limit=1, window_seconds=60, now=0.0)
    assert limiter.hit("b", limit=1, window_seconds=60, now=0.0)
    assert limiter.remaining("a", limit=1, window_seconds=60, now=1.0) == 0

    limiter.reset()
    assert limiter.remaining("a", limit=1, window_seconds=60, now=1.0) == 1


def test_idle_keys_are_dropped():
    limiter = SlidingWindowRateLimiter()
    for i in range(50):
        assert limiter.hit(f"10.0.0.{i}", limit=5, window_seconds=60, now=float(i))
    assert len(limiter._hits) == 50

    # one window later every earlier key is idle
    assert limiter.hit("10.0.1.1", limit=5, window_seconds=60, now=200.0)
    assert set(limiter._hits) == {"10.0.1.1"}
    assert limiter.remaining("10.0.0.3", limit=5, window_seconds=60, now=200.0) == 5
