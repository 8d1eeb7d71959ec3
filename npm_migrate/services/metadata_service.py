"""
Metadata fetching for migrate-npm-registry.

The source document must be there and must parse. The target document is
best effort: anything that is not a usable metadata document means the
package has not been published to the target yet.
"""

import json
import logging
from typing import Optional

from ..domain.metadata import RegistryMetadata
from ..errors import MalformedMetadataError, MetadataParseError, SourceFetchError
from ..infra.registry_client import RegistryClient, metadata_url

logger = logging.getLogger(__name__)


class MetadataFetcher:
    """
    Fetches and parses package metadata from source and target registries.

    Example:
        fetcher = MetadataFetcher(RegistryClient())
        source = fetcher.fetch_source("https://registry.npmjs.org", "left-pad")
        target = fetcher.fetch_target("https://npm.internal", "left-pad")
    """

    def __init__(self, client: RegistryClient):
        self.client = client

    def fetch_source(self, registry: str, package_name: str) -> RegistryMetadata:
        """
        Fetch the source registry's metadata.

        Raises:
            NetworkUnreachableError: registry cannot be reached
            SourceFetchError: status other than 200
            MetadataParseError: body is not JSON
            MalformedMetadataError: JSON without a versions object
        """
        status, body = self.client.fetch_document(registry, package_name)
        if status != 200:
            raise SourceFetchError(metadata_url(registry, package_name), status)

        try:
            document = json.loads(body)
        except ValueError as e:
            raise MetadataParseError(
                f"Source metadata for {package_name} is not valid JSON: {e}"
            ) from e

        metadata = RegistryMetadata.from_document(package_name, document)
        logger.debug(f"{package_name}: {len(metadata)} versions on source")
        return metadata

    def fetch_target(self, registry: str, package_name: str) -> Optional[RegistryMetadata]:
        """
        Fetch the target registry's metadata.

        Returns:
            RegistryMetadata, or None when the package is absent on target

        Raises:
            NetworkUnreachableError: registry cannot be reached
        """
        status, body = self.client.fetch_document(registry, package_name)

        try:
            document = json.loads(body)
        except ValueError:
            logger.debug(f"{package_name}: target answered HTTP {status} without JSON, treating as absent")
            return None

        try:
            metadata = RegistryMetadata.from_document(package_name, document)
        except MalformedMetadataError:
            logger.debug(f"{package_name}: target answered HTTP {status} without versions, treating as absent")
            return None

        logger.debug(f"{package_name}: {len(metadata)} versions on target")
        return metadata
