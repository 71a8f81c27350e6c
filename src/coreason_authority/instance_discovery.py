# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_authority

"""
Cloud instance discovery: establishes the trusted aliases of an authority host.
"""

from typing import Any, Protocol

from pydantic import ValidationError

from coreason_authority.config import AuthorityConfig
from coreason_authority.exceptions import InvalidCloudDiscoveryMetadataError, UntrustedAuthorityError
from coreason_authority.models import AuthorityMetadataRecord, MetadataSource
from coreason_authority.models_internal import CloudDiscoveryMetadata, CloudInstanceDiscoveryResponse
from coreason_authority.transport import NetworkTransport
from coreason_authority.url import CanonicalAuthorityUrl
from coreason_authority.utils.logger import logger


class InstanceMetadataFetcher(Protocol):
    """Strategy fetching the raw instance discovery document for a canonical authority."""

    async def __call__(self, canonical_authority: str) -> Any: ...


def metadata_from_host(host: str) -> CloudDiscoveryMetadata:
    """
    Builds a single-alias group where the host is its own preferred network and cache host.
    """
    return CloudDiscoveryMetadata(preferred_network=host, preferred_cache=host, aliases=[host])


class CloudInstanceResolver:
    """
    Resolves the cloud discovery metadata of a host.

    Sources are tried in order: non-expired cache record, known authorities,
    configured cloud discovery metadata, instance discovery over the network.
    If none vouches for the host, the authority is untrusted.
    """

    def __init__(
        self,
        config: AuthorityConfig,
        network: NetworkTransport,
        fetcher: InstanceMetadataFetcher | None = None,
    ) -> None:
        """
        Initialize the CloudInstanceResolver.

        Args:
            config: The authority configuration.
            network: Transport used by the default fetcher.
            fetcher: Replaces the network fetch of the instance discovery document (optional).
        """
        self.config = config
        self.network = network
        self.fetcher: InstanceMetadataFetcher = fetcher or self.fetch_instance_discovery

    async def fetch_instance_discovery(self, canonical_authority: str) -> Any:
        """
        Queries the instance discovery endpoint, asking it to validate `canonical_authority`.
        """
        params = {
            "api-version": self.config.instance_discovery_api_version,
            "authorization_endpoint": f"{canonical_authority}oauth2/v2.0/authorize",
        }
        return await self.network.get_json(self.config.instance_discovery_endpoint, params=params)

    async def resolve(
        self, url: CanonicalAuthorityUrl, cached: AuthorityMetadataRecord | None
    ) -> tuple[CloudDiscoveryMetadata, MetadataSource]:
        """
        Resolves the alias group of `url`'s host.

        Args:
            url: The canonical authority as constructed.
            cached: A record previously found for the host, if any.

        Returns:
            tuple[CloudDiscoveryMetadata, MetadataSource]: The alias group and where it came from.

        Raises:
            InvalidCloudDiscoveryMetadataError: If the configured document cannot be parsed.
            UntrustedAuthorityError: If no source vouches for the host.
        """
        host = url.host_name_and_port

        if cached is not None and not cached.is_expired() and cached.has_cloud_metadata():
            logger.debug(f"Cloud discovery metadata for {host} served from cache")
            return cached.cloud_metadata(), MetadataSource.CACHE

        metadata = self.metadata_from_config(host)
        if metadata is not None:
            logger.debug(f"Cloud discovery metadata for {host} served from configuration")
            return metadata, MetadataSource.CONFIG

        metadata = await self.metadata_from_network(url)
        logger.debug(f"Cloud discovery metadata for {host} served from instance discovery")
        return metadata, MetadataSource.NETWORK

    def metadata_from_config(self, host: str) -> CloudDiscoveryMetadata | None:
        """
        Looks the host up in known authorities, then in the configured cloud discovery document.

        Raises:
            InvalidCloudDiscoveryMetadataError: If the configured document cannot be parsed.
        """
        if host.lower() in self.config.known_authorities:
            return metadata_from_host(host)

        if self.config.cloud_discovery_metadata:
            try:
                document = CloudInstanceDiscoveryResponse.model_validate_json(self.config.cloud_discovery_metadata)
            except ValidationError as e:
                raise InvalidCloudDiscoveryMetadataError(
                    f"Invalid cloudDiscoveryMetadata provided. Must be a JSON instance discovery response: {e}"
                ) from e
            match = document.metadata_for_host(host)
            if match is not None:
                return match
        return None

    async def metadata_from_network(self, url: CanonicalAuthorityUrl) -> CloudDiscoveryMetadata:
        """
        Validates the host through instance discovery.

        A successful response that does not list the host still vouches for it
        (custom domain); an empty or failed response does not.

        Raises:
            UntrustedAuthorityError: If the request fails or returns no metadata.
        """
        host = url.host_name_and_port
        try:
            payload = await self.fetcher(url.url)
            document = CloudInstanceDiscoveryResponse.model_validate(payload)
        except Exception as e:
            logger.warning(f"Instance discovery for {host} failed: {e}")
            raise UntrustedAuthorityError(
                f"The provided authority {host} is not a trusted authority. "
                "Please include this authority in the known_authorities config parameter."
            ) from e

        if not document.metadata:
            logger.warning(f"Instance discovery returned no metadata for {host}")
            raise UntrustedAuthorityError(
                f"The provided authority {host} is not a trusted authority. "
                "Please include this authority in the known_authorities config parameter."
            )

        match = document.metadata_for_host(host)
        if match is None:
            logger.info(f"Instance discovery succeeded without listing {host}; trusting it as its own alias")
            return metadata_from_host(host)
        return match
