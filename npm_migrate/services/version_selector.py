"""
Version selection and tarball location.

Decides which source versions still need to go to the target and maps
them to the URLs their tarballs are served from.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..domain.metadata import RegistryMetadata
from ..errors import MalformedMetadataError

logger = logging.getLogger(__name__)

EXISTS_ON_TARGET = "already exists on target. Skipping."


@dataclass(frozen=True)
class SelectionPolicy:
    """
    Rules for skipping versions.

    force: migrate every source version regardless of the target
    pinned_version: when set, only this version is ever migrated
    """
    force: bool = False
    pinned_version: Optional[str] = None


@dataclass(frozen=True)
class SkipDecision:
    version: str
    reason: str

    @property
    def message(self) -> str:
        return f"{self.version} {self.reason}"


@dataclass
class Selection:
    """Versions kept for migration plus the ones dropped and why."""
    retained: RegistryMetadata
    skipped: List[SkipDecision] = field(default_factory=list)


def skip_reason(
    version: str,
    target: Optional[RegistryMetadata],
    policy: SelectionPolicy,
) -> Optional[str]:
    """Why ``version`` should not be migrated, or None to keep it."""
    if policy.force:
        return None
    if target is not None and version in target:
        return EXISTS_ON_TARGET
    if policy.pinned_version is not None and version != policy.pinned_version:
        return f"does not match pinned version {policy.pinned_version}. Skipping."
    return None


def select_versions(
    source: RegistryMetadata,
    target: Optional[RegistryMetadata] = None,
    policy: SelectionPolicy = SelectionPolicy(),
) -> Selection:
    """
    Filter source metadata down to the versions the target is missing.

    The source metadata is left untouched; a filtered copy is returned.
    """
    skipped = []
    for version in source.version_keys():
        reason = skip_reason(version, target, policy)
        if reason:
            decision = SkipDecision(version, reason)
            logger.debug(f"{source.name}: {decision.message}")
            skipped.append(decision)

    retained = source.without(d.version for d in skipped)
    return Selection(retained=retained, skipped=skipped)


def locate_tarballs(metadata: RegistryMetadata) -> List[Tuple[str, str]]:
    """
    Map each version to its tarball URL, in metadata order.

    Raises:
        MalformedMetadataError: a version has no dist.tarball
    """
    located = []
    for version, entry in metadata.versions.items():
        if not entry.tarball_url:
            raise MalformedMetadataError(
                f"{metadata.name}@{version} has no dist.tarball in its metadata"
            )
        located.append((version, entry.tarball_url))
    return located
