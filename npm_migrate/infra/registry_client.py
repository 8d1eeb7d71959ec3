"""
npm registry HTTP client for migrate-npm-registry.

Two kinds of request go to a registry:
- GET <registry>/<package> for the package's metadata document
- GET <tarball url> for a version's gzip tarball, streamed

No authentication: only public reads are performed here. Publishing goes
through the external publish command instead.
"""

import logging
import threading
from contextlib import contextmanager
from typing import IO, Iterator, List, Optional, Tuple

import requests

from ..errors import NetworkUnreachableError

logger = logging.getLogger(__name__)


def package_path(package_name: str) -> str:
    """
    Path segment for a package, encoded the way the npm CLI does.

    Scoped names keep their '@' but the separating slash is escaped:
        @babel/core -> @babel%2fcore
    """
    return package_name.replace('/', '%2f')


def metadata_url(registry: str, package_name: str) -> str:
    """Metadata document URL: registry endpoint (trailing slash dropped) + package."""
    return f"{registry.rstrip('/')}/{package_path(package_name)}"


class RegistryClient:
    """
    Client for the read side of an npm registry.

    Can be shared between threads; each thread gets its own requests session.

    Example:
        client = RegistryClient(timeout=30)
        status, body = client.fetch_document("https://registry.npmjs.org", "left-pad")
    """

    def __init__(self, timeout: Optional[float] = 30, user_agent: str = "migrate-npm-registry"):
        """
        Initialize RegistryClient.

        Args:
            timeout: HTTP request timeout in seconds (None waits forever)
            user_agent: User-Agent header sent with every request
        """
        self.timeout = timeout
        self.user_agent = user_agent
        self._local = threading.local()
        self._sessions: List[requests.Session] = []
        self._lock = threading.Lock()

    @property
    def session(self) -> requests.Session:
        """HTTP session owned by the calling thread."""
        session = getattr(self._local, 'session', None)
        if session is None:
            session = requests.Session()
            session.headers.update({
                'Accept': 'application/json',
                'User-Agent': self.user_agent,
            })
            self._local.session = session
            with self._lock:
                self._sessions.append(session)
        return session

    def fetch_document(self, registry: str, package_name: str) -> Tuple[int, str]:
        """
        Fetch a package's raw metadata document.

        Args:
            registry: Registry base endpoint
            package_name: Package name (scoped names allowed)

        Returns:
            Tuple of (status_code, body)

        Raises:
            NetworkUnreachableError: if the registry cannot be reached
        """
        url = metadata_url(registry, package_name)
        logger.debug(f"GET {url}")
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.ConnectionError as e:
            raise NetworkUnreachableError(f"Cannot reach {url}: {e}") from e

        logger.debug(f"{url} -> HTTP {response.status_code}")
        return response.status_code, response.text

    @contextmanager
    def open_tarball(self, url: str) -> Iterator[IO[bytes]]:
        """
        Stream a tarball download.

        Yields the undecoded response body as a file-like object; the
        response is closed when the block exits.

        Raises:
            requests.RequestException: on connection failure or HTTP error status
        """
        logger.debug(f"GET {url} (stream)")
        response = self.session.get(
            url,
            stream=True,
            timeout=self.timeout,
            headers={'Accept': 'application/octet-stream'},
        )
        try:
            response.raise_for_status()
            # Undo any transfer Content-Encoding; the tarball's own gzip layer stays.
            response.raw.decode_content = True
            yield response.raw
        finally:
            response.close()

    def close(self) -> None:
        with self._lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()
        self._local = threading.local()
