"""
Registry metadata domain objects.

A registry serves one JSON document per package:

    {"name": "left-pad",
     "versions": {"1.0.0": {"dist": {"tarball": "https://.../left-pad-1.0.0.tgz"}}}}

Only the version keys and each version's tarball URL are consumed.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from ..errors import MalformedMetadataError


@dataclass(frozen=True)
class VersionEntry:
    """One published version of a package."""
    version: str
    tarball_url: Optional[str] = None

    @classmethod
    def from_document(cls, version: str, data: Any) -> 'VersionEntry':
        tarball = None
        if isinstance(data, dict):
            dist = data.get('dist')
            if isinstance(dist, dict):
                tarball = dist.get('tarball')
        return cls(version=version, tarball_url=tarball or None)


@dataclass
class RegistryMetadata:
    """Versions a registry holds for one package, in document order."""
    name: str
    versions: Dict[str, VersionEntry] = field(default_factory=dict)

    @classmethod
    def from_document(cls, name: str, document: Any) -> 'RegistryMetadata':
        """
        Build from a parsed registry document.

        Raises:
            MalformedMetadataError: if the document has no ``versions`` object
        """
        if not isinstance(document, dict) or not isinstance(document.get('versions'), dict):
            raise MalformedMetadataError(f"Metadata for {name} has no versions object")

        versions = {
            version: VersionEntry.from_document(version, data)
            for version, data in document['versions'].items()
        }
        return cls(name=document.get('name') or name, versions=versions)

    def version_keys(self) -> List[str]:
        return list(self.versions)

    def without(self, versions: Iterable[str]) -> 'RegistryMetadata':
        """Copy of this metadata with the given versions removed."""
        excluded = set(versions)
        return RegistryMetadata(
            name=self.name,
            versions={v: e for v, e in self.versions.items() if v not in excluded},
        )

    def __contains__(self, version: str) -> bool:
        return version in self.versions

    def __len__(self) -> int:
        return len(self.versions)
