"""
Migration job state.

One MigrationJob exists per package while it migrates; it is dropped
once the job's result has been reported.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from .metadata import RegistryMetadata


@dataclass
class MigrationJob:
    """Working state of one package's migration."""
    package: str
    source_registry: str
    target_registry: str
    selected: Optional[RegistryMetadata] = None
    tarballs: List[Tuple[str, str]] = field(default_factory=list)   # (version, url)
    archives: List[Tuple[str, Path]] = field(default_factory=list)  # (version, local path)

    def tarball_url(self, version: str) -> Optional[str]:
        return dict(self.tarballs).get(version)
