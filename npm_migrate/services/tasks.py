"""
Fail-fast parallel execution for pipeline stages.

Transfers and publishes run concurrently inside a job. The first failure
sets a shared cancellation event: queued tasks never start, running tasks
see the event and stop at their next checkpoint. Every task still gets a
result so each version can be reported on its own.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)


class Cancelled(Exception):
    """Raised by a task that stopped because a sibling failed."""


@dataclass
class TaskResult:
    """Outcome of one task in a stage."""
    key: str
    value: Any = None
    error: Optional[Exception] = None
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and not self.cancelled


def run_fail_fast(
    items: Sequence[Tuple[str, Any]],
    task: Callable[[Any, threading.Event], Any],
    max_workers: int = 4,
) -> List[TaskResult]:
    """
    Run ``task(arg, cancel_event)`` for every ``(key, arg)`` pair.

    Keys must be unique. Results come back in input order.
    """
    if not items:
        return []

    cancel_event = threading.Event()
    results: Dict[str, TaskResult] = {}

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {executor.submit(task, arg, cancel_event): key for key, arg in items}

        for future in as_completed(futures):
            key = futures[future]
            if future.cancelled():
                results[key] = TaskResult(key, cancelled=True)
                continue

            try:
                results[key] = TaskResult(key, value=future.result())
            except Cancelled:
                results[key] = TaskResult(key, cancelled=True)
            except Exception as e:
                results[key] = TaskResult(key, error=e)
                if not cancel_event.is_set():
                    logger.debug(f"{key} failed, cancelling remaining tasks")
                    cancel_event.set()
                    for pending in futures:
                        pending.cancel()

    return [results[key] for key, _ in items]
