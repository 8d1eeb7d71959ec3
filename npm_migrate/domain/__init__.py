"""
Domain objects for migrate-npm-registry.

- RegistryMetadata / VersionEntry: what a registry says about a package
- MigrationJob: one package's working state
- VersionOutcome / JobResult: what a migration job did
"""

from .metadata import RegistryMetadata, VersionEntry
from .job import MigrationJob
from .operation import OperationStatus, VersionOutcome, JobResult

__all__ = [
    'RegistryMetadata',
    'VersionEntry',
    'MigrationJob',
    'OperationStatus',
    'VersionOutcome',
    'JobResult',
]
