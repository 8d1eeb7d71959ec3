"""
Operator-facing output for migrate-npm-registry.

Jobs run concurrently and report as they go, so every line is written
under a lock. Line order within a job follows the pipeline: skip notices,
archive entry names, publish output, then DONE or a failure message.

In JSON mode the progress lines are dropped and each finished job is
emitted as one JSON object per line.
"""

import json
import logging
import threading
from typing import Callable, Optional

import click

from .domain.operation import JobResult, OperationStatus
from .errors import MigrationError

logger = logging.getLogger(__name__)

DONE = "DONE"


def failure_message(error: Exception) -> str:
    """Categorized one-line message for a job-level failure."""
    if isinstance(error, MigrationError):
        return error.describe()
    return f"Error: {error}"


class Reporter:
    """
    Thread-safe printer for job progress and results.

    Args:
        prefix_packages: Prefix lines with "[package] " (several jobs at once)
        output_json: Emit JSONL job results instead of progress lines
        echo: Output function, click.echo by default
    """

    def __init__(
        self,
        prefix_packages: bool = False,
        output_json: bool = False,
        echo: Optional[Callable[[str], None]] = None,
    ):
        self.prefix_packages = prefix_packages
        self.output_json = output_json
        self.echo = echo or click.echo
        self._lock = threading.Lock()

    def _line(self, package: str, text: str) -> None:
        if self.output_json:
            return
        if self.prefix_packages:
            text = f"[{package}] {text}"
        with self._lock:
            self.echo(text)

    def skipped(self, package: str, message: str) -> None:
        self._line(package, message)

    def entry(self, package: str, name: str) -> None:
        logger.debug(f"{package}: entry {name}")
        self._line(package, name)

    def job_finished(self, result: JobResult) -> None:
        """Print publish output then DONE, or the failure details."""
        if self.output_json:
            with self._lock:
                self.echo(json.dumps(result.to_dict(), ensure_ascii=False))
            return

        for output in result.outputs():
            for line in output.splitlines():
                self._line(result.package, line)

        if result.success:
            self._line(result.package, DONE)
            return

        if result.error is not None:
            self._line(result.package, failure_message(result.error))
            return

        for outcome in result.outcomes:
            if outcome.status == OperationStatus.SUCCESS:
                self._line(result.package, f"  ✓ {outcome.version}: published")
            elif outcome.status == OperationStatus.FAILED:
                self._line(result.package, f"  ✗ {outcome.version}: {outcome.error}")
            elif outcome.status == OperationStatus.CANCELLED:
                self._line(result.package, f"  - {outcome.version}: {outcome.message}")
        self._line(
            result.package,
            f"Error: {result.failed} of {result.total - result.skipped} versions failed",
        )
