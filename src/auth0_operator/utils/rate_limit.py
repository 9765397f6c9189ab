"""Rate limiting utilities for API calls."""

from __future__ import annotations

import os
import threading
import time
from functools import wraps
from typing import Any, Callable, TypeVar

from .. import metrics

_F = TypeVar("_F", bound=Callable[..., Any])


class RateLimiter:
    """Minimum-interval throttle shared by all callers of one API."""

    def __init__(self, api_type: str, calls_per_second: float):
        self.api_type = api_type
        self.min_interval = 1.0 / calls_per_second if calls_per_second > 0 else 0.0
        self._last_call_time = 0.0
        self._lock = threading.Lock()

    def wait(self) -> None:
        """Block until the next call is allowed."""
        with self._lock:
            elapsed = time.monotonic() - self._last_call_time
            if elapsed < self.min_interval:
                metrics.rate_limit_hits_total.labels(api_type=self.api_type).inc()
                time.sleep(self.min_interval - elapsed)
            self._last_call_time = time.monotonic()

    def __call__(self, func: _F) -> _F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            self.wait()
            return func(*args, **kwargs)

        return wrapper  # type: ignore


k8s_limiter = RateLimiter("k8s", float(os.getenv("K8S_RATE_LIMIT_PER_SECOND", "10.0")))
auth0_limiter = RateLimiter("auth0", float(os.getenv("AUTH0_RATE_LIMIT_PER_SECOND", "5.0")))


def rate_limit_k8s(func: _F) -> _F:
    """Decorator to rate limit Kubernetes API calls."""
    return k8s_limiter(func)


def rate_limit_auth0(func: _F) -> _F:
    """Decorator to rate limit Auth0 Management API calls."""
    return auth0_limiter(func)
