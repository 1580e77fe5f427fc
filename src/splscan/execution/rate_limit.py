"""Rate Limiting — minimum spacing between outgoing RPC calls.

Manifesto:
Public and paid RPC providers throttle or ban clients that burst. Batch
workers share one limiter per endpoint so the aggregate call rate stays
under the provider's ceiling regardless of how many threads are running.

ARCHITECTURE
────────────
::

    RateLimiter (ABC)
      └── IntervalRateLimiter   ─ at most one permit per ``interval`` seconds

    limiter_for_endpoint(url, enabled)  ─ per-endpoint delay lookup

    Limiters are explicitly constructed and passed to the executor that
    uses them; there is no process-wide registry.

Related modules:
    batch.py  — acquires a permit before each worker call
    retry.py  — backoff on transient failures

Example::

    limiter = IntervalRateLimiter(interval=0.2)
    limiter.acquire(block=True)
    client.get_account_info(address)

Tags:
    splscan, execution, rate-limit, throttle
"""

import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field

DEFAULT_RPC_DELAY_MS = 200

# Providers with their own, looser limits.
RATE_LIMIT_DELAYS_MS: dict[str, int] = {
    "https://ssc-dao.genesysgo.net": 25,
}


class RateLimiter(ABC):
    """Abstract base for rate limiters."""

    @abstractmethod
    def acquire(self, block: bool = False) -> bool:
        """Attempt to take a permit.

        Args:
            block: If True, wait until a permit is available

        Returns:
            True if a permit was granted, False otherwise
        """
        ...

    @abstractmethod
    def get_wait_time(self) -> float:
        """Seconds until the next permit is available (0 if now)."""
        ...


@dataclass
class IntervalRateLimiter(RateLimiter):
    """Grants permits no closer together than ``interval`` seconds.

    Blocking acquires are serialised: the lock is held while waiting so the
    next permit's time is measured from the previous grant, never from a
    reservation that might be honoured late.

    Attributes:
        interval: Minimum seconds between two permits
    """

    interval: float
    clock: Callable[[], float] = time.monotonic
    sleep: Callable[[float], None] = time.sleep

    _next_allowed: float = field(default=0.0, init=False)
    _granted: int = field(default=0, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False)

    def __post_init__(self):
        if self.interval < 0:
            raise ValueError(f"interval must be >= 0, got {self.interval}")

    def _grant(self, now: float) -> None:
        self._next_allowed = now + self.interval
        self._granted += 1

    def acquire(self, block: bool = False) -> bool:
        """Attempt to take a permit."""
        with self._lock:
            wait = self._next_allowed - self.clock()
            if wait > 0:
                if not block:
                    return False
                self.sleep(wait)
            self._grant(self.clock())
            return True

    def get_wait_time(self) -> float:
        with self._lock:
            return max(0.0, self._next_allowed - self.clock())

    @property
    def granted(self) -> int:
        """Permits granted so far."""
        with self._lock:
            return self._granted


def endpoint_delay_ms(endpoint: str) -> int:
    """Configured delay for ``endpoint``, falling back to the default."""
    return RATE_LIMIT_DELAYS_MS.get(endpoint.rstrip("/"), DEFAULT_RPC_DELAY_MS)


def limiter_for_endpoint(
    endpoint: str,
    enabled: bool,
    delay_ms: int | None = None,
) -> IntervalRateLimiter | None:
    """Build the limiter for ``endpoint``, or ``None`` when rate limiting is off.

    Args:
        endpoint: RPC URL the limited calls go to
        enabled: Whether rate limiting was requested
        delay_ms: Explicit delay overriding the per-endpoint table
    """
    if not enabled:
        return None
    delay = delay_ms if delay_ms is not None else endpoint_delay_ms(endpoint)
    return IntervalRateLimiter(interval=delay / 1000)


__all__ = [
    "DEFAULT_RPC_DELAY_MS",
    "RATE_LIMIT_DELAYS_MS",
    "RateLimiter",
    "IntervalRateLimiter",
    "endpoint_delay_ms",
    "limiter_for_endpoint",
]
