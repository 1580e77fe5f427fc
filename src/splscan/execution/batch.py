"""Batch Executor — thread-pool fan-out for per-item RPC work.

WHY
───
Correlating tens of thousands of mints means one ``getAccountInfo`` per
mint. Each call blocks on the network, so a thread pool gives real
concurrency; one slow or malformed account must never hold up or fail the
rest of the batch.

ARCHITECTURE
────────────
::

    BatchExecutor(max_workers, limiter)
      └── .run_all(items, worker)  ─ one task per item, barrier at the end
                │
                ├── worker thread: limiter.acquire() → worker(item)
                │       └── outcome ──► bounded Queue ──┐
                │                                        ▼
                └── calling thread: collects exactly len(items) outcomes
                                    └── BatchResult (results + counts)

    worker(item) -> R      ─ kept in results
    worker(item) -> None   ─ skipped (counted)
    worker(item) raises    ─ failed (counted, logged at debug)

Workers hand their outcomes to the collecting thread over a bounded queue
instead of appending to a shared list; a full queue blocks the workers.

Related modules:
    rate_limit.py  — permit taken before every worker call

Example::

    executor = BatchExecutor(limiter=IntervalRateLimiter(0.2))
    result = executor.run_all(mints, join_metadata)
    print(result.succeeded, result.skipped, result.failed)
"""

from __future__ import annotations

import os
import queue
import uuid
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Generic, TypeVar

from splscan.core.logging import get_logger
from splscan.execution.rate_limit import RateLimiter

logger = get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")

DEFAULT_QUEUE_SIZE = 1024


class OutcomeStatus(str, Enum):
    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class _Outcome(Generic[R]):
    status: OutcomeStatus
    value: R | None = None
    error: BaseException | None = None


@dataclass
class BatchResult(Generic[R]):
    """Aggregate result of running a batch."""

    batch_id: str
    results: list[R]
    total: int
    skipped: int
    failed: int
    started_at: datetime
    completed_at: datetime
    errors: list[BaseException] = field(default_factory=list, repr=False)

    @property
    def succeeded(self) -> int:
        return len(self.results)

    @property
    def duration_seconds(self) -> float:
        """Wall-clock duration of the entire batch."""
        return (self.completed_at - self.started_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        """Serialise for logging."""
        return {
            "batch_id": self.batch_id,
            "total": self.total,
            "succeeded": self.succeeded,
            "skipped": self.skipped,
            "failed": self.failed,
            "duration_seconds": self.duration_seconds,
        }


def default_workers() -> int:
    return os.cpu_count() or 4


class BatchExecutor:
    """Thread-pool executor with an optional shared rate limiter.

    Parameters
    ----------
    max_workers : int | None
        Pool size; defaults to the host's CPU count.
    limiter : RateLimiter | None
        When set, every task takes a permit before calling its worker.
    queue_size : int
        Capacity of the outcome channel between workers and the collector.
    """

    def __init__(
        self,
        max_workers: int | None = None,
        limiter: RateLimiter | None = None,
        queue_size: int = DEFAULT_QUEUE_SIZE,
    ) -> None:
        self.max_workers = max_workers or default_workers()
        self.limiter = limiter
        self.queue_size = queue_size

    def run_all(self, items: Sequence[T], worker: Callable[[T], R | None]) -> BatchResult[R]:
        """Run ``worker`` over every item and wait for all of them.

        Output order is not related to input order.
        """
        batch_id = str(uuid.uuid4())
        started_at = datetime.now(UTC)
        channel: queue.Queue[_Outcome[R]] = queue.Queue(maxsize=self.queue_size)

        logger.debug(
            "batch.start",
            batch_id=batch_id,
            items=len(items),
            max_workers=self.max_workers,
            rate_limited=self.limiter is not None,
        )

        def _run_one(item: T) -> None:
            # every task reports exactly once, whatever the worker raises
            outcome: _Outcome[R] = _Outcome(OutcomeStatus.SKIPPED)
            try:
                if self.limiter is not None:
                    self.limiter.acquire(block=True)
                value = worker(item)
                if value is not None:
                    outcome = _Outcome(OutcomeStatus.COMPLETED, value=value)
            except BaseException as e:
                outcome = _Outcome(OutcomeStatus.FAILED, error=e)
                if not isinstance(e, Exception):
                    raise
            finally:
                channel.put(outcome)

        results: list[R] = []
        errors: list[BaseException] = []
        skipped = 0

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            for item in items:
                pool.submit(_run_one, item)
            for _ in range(len(items)):
                outcome = channel.get()
                if outcome.status is OutcomeStatus.COMPLETED:
                    results.append(outcome.value)
                elif outcome.status is OutcomeStatus.SKIPPED:
                    skipped += 1
                else:
                    errors.append(outcome.error)
                    logger.debug("batch.item_failed", batch_id=batch_id, error=str(outcome.error))

        result = BatchResult(
            batch_id=batch_id,
            results=results,
            total=len(items),
            skipped=skipped,
            failed=len(errors),
            started_at=started_at,
            completed_at=datetime.now(UTC),
            errors=errors,
        )
        logger.debug("batch.complete", **result.to_dict())
        return result


__all__ = [
    "BatchExecutor",
    "BatchResult",
    "OutcomeStatus",
    "default_workers",
]
