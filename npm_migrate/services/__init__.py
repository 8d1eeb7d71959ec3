"""
Service layer for migrate-npm-registry.

Each pipeline stage is a service built on the infra clients:
- MetadataFetcher: source and target metadata
- select_versions / locate_tarballs: what to migrate and from where
- ArchiveTransfer: download and re-pack tarballs
- Publisher: publish archives to the target
- MigrationService: runs the stages per package, packages in parallel
"""

from .metadata_service import MetadataFetcher
from .version_selector import (
    SelectionPolicy,
    Selection,
    SkipDecision,
    select_versions,
    locate_tarballs,
)
from .archive_service import ArchiveTransfer, local_archive_name, repack
from .publish_service import Publisher
from .migration_service import MigrationService

__all__ = [
    'MetadataFetcher',
    'SelectionPolicy',
    'Selection',
    'SkipDecision',
    'select_versions',
    'locate_tarballs',
    'ArchiveTransfer',
    'local_archive_name',
    'repack',
    'Publisher',
    'MigrationService',
]
