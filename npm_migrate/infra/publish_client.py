"""
Publish command infrastructure for migrate-npm-registry.

Wraps the external command that uploads a local tarball to a registry
(``npm publish --registry <url> <file>`` by default). All publishing goes
through this client, making it:
- Easy to mock for testing
- Consistent in how success is judged
- Cancellable while the process runs
"""

import subprocess
import threading
from dataclasses import dataclass
from typing import List, Optional, Sequence
import logging

logger = logging.getLogger(__name__)

# How often a running publish checks for cancellation, in seconds
POLL_INTERVAL = 0.2


@dataclass
class PublishRun:
    """Result of one publish command invocation."""
    args: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        """Clean exit and nothing on stderr."""
        return not self.cancelled and self.returncode == 0 and not self.stderr


class PublishClient:
    """
    Runs the publish command against a target registry.

    Example:
        client = PublishClient(("npm", "publish"))
        run = client.publish("/tmp/left-pad-1.0.0.tgz", "https://npm.internal/")
        if run.ok:
            print(run.stdout)
    """

    def __init__(self, command: Sequence[str] = ("npm", "publish")):
        """
        Initialize PublishClient.

        Args:
            command: Command prefix; registry flag and file path are appended
        """
        self.command = list(command)

    def build_args(self, archive_path: str, registry: str) -> List[str]:
        return self.command + ['--registry', registry, archive_path]

    def publish(
        self,
        archive_path: str,
        registry: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> PublishRun:
        """
        Publish one archive.

        Args:
            archive_path: Local tarball to upload
            registry: Target registry endpoint
            cancel_event: When set, the running process is terminated

        Returns:
            PublishRun with captured output

        Raises:
            OSError: if the command cannot be started
        """
        args = self.build_args(archive_path, registry)
        logger.debug(f"Running: {' '.join(args)}")

        process = subprocess.Popen(
            args,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
        try:
            while True:
                try:
                    stdout, stderr = process.communicate(timeout=POLL_INTERVAL)
                    break
                except subprocess.TimeoutExpired:
                    if cancel_event is not None and cancel_event.is_set():
                        logger.debug(f"Terminating publish of {archive_path}")
                        process.kill()
                        stdout, stderr = process.communicate()
                        return PublishRun(args, process.returncode, stdout or "", stderr or "", cancelled=True)
        finally:
            if process.poll() is None:
                process.kill()
                process.wait()

        return PublishRun(args, process.returncode, stdout or "", stderr or "")
