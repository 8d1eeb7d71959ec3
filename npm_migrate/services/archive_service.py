"""
Archive transfer service for migrate-npm-registry.

Downloads version tarballs and re-packs them, entry by entry, into local
archives ready for publishing. Entries keep their order, headers and
content bytes.
"""

import logging
import tarfile
import threading
import zlib
from pathlib import Path, PurePosixPath
from typing import IO, Callable, List, Optional, Sequence, Tuple
from urllib.parse import unquote, urlparse

import requests

from ..errors import ArchiveTransferError
from ..infra.registry_client import RegistryClient
from .tasks import Cancelled, TaskResult, run_fail_fast

logger = logging.getLogger(__name__)

EntryCallback = Callable[[str], None]


def local_archive_name(url: str) -> str:
    """
    File name for a tarball URL: its final path segment.

        https://registry.npmjs.org/left-pad/-/left-pad-1.3.0.tgz -> left-pad-1.3.0.tgz
    """
    name = PurePosixPath(unquote(urlparse(url).path)).name
    if not name or name in ('.', '..'):
        raise ArchiveTransferError(url, "cannot derive a file name from the URL")
    return name


def repack(
    stream: IO[bytes],
    destination: Path,
    on_entry: Optional[EntryCallback] = None,
    cancel_event: Optional[threading.Event] = None,
) -> List[str]:
    """
    Copy every entry of a (possibly compressed) tar stream into a new
    gzip tarball at ``destination``.

    Returns:
        Entry names in the order they were written

    Raises:
        Cancelled: ``cancel_event`` was set between entries
    """
    names = []
    with tarfile.open(fileobj=stream, mode='r|*') as source, \
            tarfile.open(destination, mode='w:gz') as target:
        for member in source:
            if cancel_event is not None and cancel_event.is_set():
                raise Cancelled(str(destination))

            if on_entry:
                on_entry(member.name)

            # Stream mode can only hand out regular file contents
            content = source.extractfile(member) if member.isreg() else None
            target.addfile(member, content)
            names.append(member.name)

    return names


class ArchiveTransfer:
    """
    Produces one local archive per tarball URL.

    Example:
        transfer = ArchiveTransfer(RegistryClient(), Path("/tmp"))
        results = transfer.transfer_all([("1.0.0", "https://.../pkg-1.0.0.tgz")])
    """

    def __init__(
        self,
        client: RegistryClient,
        work_dir: Path,
        parallel: int = 4,
        on_entry: Optional[EntryCallback] = None,
    ):
        """
        Initialize ArchiveTransfer.

        Args:
            client: Registry client used to stream tarballs
            work_dir: Directory local archives are written to
            parallel: Maximum concurrent downloads
            on_entry: Called with each entry name as it is copied
        """
        self.client = client
        self.work_dir = Path(work_dir)
        self.parallel = parallel
        self.on_entry = on_entry

    def transfer(self, url: str, cancel_event: Optional[threading.Event] = None) -> Path:
        """
        Download one tarball and re-pack it locally.

        The partial file is removed on failure or cancellation.

        Raises:
            ArchiveTransferError: any download, decompression, archive or file error
            Cancelled: a sibling transfer failed first
        """
        if cancel_event is not None and cancel_event.is_set():
            raise Cancelled(url)

        destination = self.work_dir / local_archive_name(url)
        try:
            self.work_dir.mkdir(parents=True, exist_ok=True)
            with self.client.open_tarball(url) as stream:
                names = repack(stream, destination, self.on_entry, cancel_event)
        except Cancelled:
            _remove_partial(destination)
            raise
        except (requests.RequestException, tarfile.TarError, zlib.error, EOFError, OSError) as e:
            _remove_partial(destination)
            raise ArchiveTransferError(url, str(e) or type(e).__name__) from e

        logger.debug(f"Wrote {len(names)} entries from {url} to {destination}")
        return destination

    def transfer_all(self, tarballs: Sequence[Tuple[str, str]]) -> List[TaskResult]:
        """
        Transfer ``(version, url)`` pairs concurrently, failing fast.

        Returns:
            One TaskResult per version, in input order; ``value`` is the local path
        """
        return run_fail_fast(tarballs, self.transfer, max_workers=self.parallel)


def _remove_partial(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Could not remove partial archive {path}: {e}")
