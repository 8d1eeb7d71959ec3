"""
Infrastructure layer for migrate-npm-registry.

Contains abstractions for external systems:
- RegistryClient: registry metadata and tarball downloads over HTTP
- PublishClient: the external publish command

These provide clean interfaces that can be mocked for testing.
"""

from .registry_client import RegistryClient, metadata_url, package_path
from .publish_client import PublishClient, PublishRun

__all__ = [
    'RegistryClient',
    'metadata_url',
    'package_path',
    'PublishClient',
    'PublishRun',
]
