"""
Error taxonomy for registry migration.

Every failure a job can hit is one of these. Each carries the short
operator-facing message the reporter prints for it.
"""

from typing import Optional

from .exit_codes import CommandError


class MigrationError(CommandError):
    """Base class for migration failures."""

    user_message: Optional[str] = None

    def describe(self) -> str:
        """Message shown to the operator."""
        return self.user_message or f"Error: {self}"


class SourceFetchError(MigrationError):
    """Source registry answered with a non-200 status."""

    def __init__(self, url: str, status_code: int):
        super().__init__(f"Error fetching source metadata from {url} (HTTP {status_code})")
        self.url = url
        self.status_code = status_code


class MetadataParseError(MigrationError):
    """Source registry body is not valid JSON."""

    user_message = "Syntax error. Please check your internet connection or registry URLs."


class NetworkUnreachableError(MigrationError):
    """DNS resolution or connection to a registry failed."""

    user_message = "Error. No network"


class MalformedMetadataError(MigrationError):
    """Metadata parsed but lacks a field the pipeline needs."""


class ArchiveTransferError(MigrationError):
    """Downloading or re-packing a single tarball failed."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Transfer of {url} failed: {reason}")
        self.url = url
        self.reason = reason


class PublishError(MigrationError):
    """The publish command exited non-zero or wrote to stderr."""

    def __init__(self, path: str, returncode: int, stderr: str = ""):
        detail = stderr.strip() or f"exit status {returncode}"
        super().__init__(f"Publishing {path} failed: {detail}")
        self.path = path
        self.returncode = returncode
        self.stderr = stderr


class UnhandledError(MigrationError):
    """Anything not covered by the classes above."""

    def __init__(self, original: BaseException):
        super().__init__(f"{type(original).__name__}: {original}")
        self.original = original
