"""
Publishing service for migrate-npm-registry.

Pushes local archives to the target registry through the publish command.
"""

import logging
import threading
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from ..errors import PublishError
from ..infra.publish_client import PublishClient
from .tasks import Cancelled, TaskResult, run_fail_fast

logger = logging.getLogger(__name__)


class Publisher:
    """
    Publishes archives to one target registry.

    A publish succeeds only when the command exits 0 and writes nothing
    to stderr.
    """

    def __init__(self, client: PublishClient, registry: str, parallel: int = 4):
        self.client = client
        self.registry = registry
        self.parallel = parallel

    def publish(self, archive_path: Path, cancel_event: Optional[threading.Event] = None) -> str:
        """
        Publish one archive.

        Returns:
            The command's stdout

        Raises:
            PublishError: command failed, wrote to stderr, or could not start
            Cancelled: a sibling publish failed first
        """
        if cancel_event is not None and cancel_event.is_set():
            raise Cancelled(str(archive_path))

        try:
            run = self.client.publish(str(archive_path), self.registry, cancel_event)
        except OSError as e:
            raise PublishError(str(archive_path), -1, str(e)) from e

        if run.cancelled:
            raise Cancelled(str(archive_path))
        if not run.ok:
            raise PublishError(str(archive_path), run.returncode, run.stderr)

        logger.debug(f"Published {archive_path} to {self.registry}")
        return run.stdout.strip()

    def publish_all(self, archives: Sequence[Tuple[str, Path]]) -> List[TaskResult]:
        """
        Publish ``(version, path)`` pairs concurrently, failing fast.

        Returns:
            One TaskResult per version, in input order; ``value`` is stdout
        """
        return run_fail_fast(archives, self.publish, max_workers=self.parallel)
