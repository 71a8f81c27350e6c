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
OpenID endpoint discovery: establishes the protocol endpoints of an authority.
"""

from typing import Any, Protocol

from pydantic import ValidationError

from coreason_authority.config import AuthorityConfig
from coreason_authority.exceptions import InvalidAuthorityMetadataError, UnableToGetOpenIdConfigError
from coreason_authority.models import AuthorityMetadataRecord, AuthorityType, MetadataSource, ProtocolMode
from coreason_authority.models_internal import OpenIdConfigResponse
from coreason_authority.transport import NetworkTransport
from coreason_authority.url import CanonicalAuthorityUrl, path_segments_of
from coreason_authority.utils.logger import logger

WELL_KNOWN_SUFFIX = ".well-known/openid-configuration"
V2_WELL_KNOWN_SUFFIX = f"v2.0/{WELL_KNOWN_SUFFIX}"
TENANT_PLACEHOLDERS = ("{tenantid}", "{tenant}")
TOKEN_PATH_SEGMENT = "/token"
DEVICE_CODE_PATH_SEGMENT = "/devicecode"


class EndpointMetadataFetcher(Protocol):
    """Strategy fetching the raw OpenID configuration document from a well-known URL."""

    async def __call__(self, openid_configuration_endpoint: str) -> Any: ...


def openid_configuration_endpoint(url: CanonicalAuthorityUrl, protocol_mode: ProtocolMode) -> str:
    """
    Builds the well-known OpenID configuration URL of an authority.

    ADFS authorities and OIDC protocol mode use the plain (v1) suffix; AAD authorities use the v2.0 one.
    """
    if url.authority_type is AuthorityType.ADFS or protocol_mode is ProtocolMode.OIDC:
        return f"{url.url}{WELL_KNOWN_SUFFIX}"
    return f"{url.url}{V2_WELL_KNOWN_SUFFIX}"


def is_same_authority_type(record: AuthorityMetadataRecord, url: CanonicalAuthorityUrl) -> bool:
    """
    True if the record was resolved for an authority with as many path segments as `url`.
    """
    return len(path_segments_of(record.canonical_authority)) == len(url.path_segments)


def rebase_endpoint(endpoint: str, resolved_for: str, url: CanonicalAuthorityUrl) -> str:
    """
    Rewrites the path segments of an endpoint resolved for another authority of the same type.

    Every `/{old}/` segment of `resolved_for` that differs from the segment at the same
    position in `url` is replaced, e.g. another B2C policy of the same tenant.
    """
    resolved_segments = path_segments_of(resolved_for)
    for index, current in enumerate(url.path_segments):
        if index >= len(resolved_segments):
            break
        previous = resolved_segments[index]
        if previous != current:
            endpoint = endpoint.replace(f"/{previous}/", f"/{current}/")
    return endpoint


def substitute_tenant(endpoint: str, url: CanonicalAuthorityUrl) -> str:
    """
    Replaces tenant placeholders with the authority's tenant.
    Policy-qualified authorities are returned verbatim.
    """
    if url.is_policy_qualified or url.tenant is None:
        return endpoint
    for placeholder in TENANT_PLACEHOLDERS:
        endpoint = endpoint.replace(placeholder, url.tenant)
    return endpoint


def device_code_endpoint_from(token_endpoint: str) -> str:
    """
    Derives the device code endpoint by rewriting the last `/token` segment of the token endpoint.
    """
    head, separator, tail = token_endpoint.rpartition(TOKEN_PATH_SEGMENT)
    if not separator:
        return token_endpoint
    return f"{head}{DEVICE_CODE_PATH_SEGMENT}{tail}"


class EndpointDiscoveryResolver:
    """
    Resolves the OpenID endpoints of a canonical authority.

    Sources are tried in order: non-expired cache record of the same authority
    type, configured authority metadata, the well-known OpenID configuration
    document. Endpoints keep their `{tenant}` placeholders; see `substitute_tenant`.
    """

    def __init__(
        self,
        config: AuthorityConfig,
        network: NetworkTransport,
        fetcher: EndpointMetadataFetcher | None = None,
    ) -> None:
        """
        Initialize the EndpointDiscoveryResolver.

        Args:
            config: The authority configuration.
            network: Transport used by the default fetcher.
            fetcher: Replaces the network fetch of the OpenID configuration (optional).
        """
        self.config = config
        self.network = network
        self.fetcher: EndpointMetadataFetcher = fetcher or self.fetch_openid_configuration

    async def fetch_openid_configuration(self, openid_configuration_endpoint: str) -> Any:
        return await self.network.get_json(openid_configuration_endpoint)

    async def resolve(
        self, url: CanonicalAuthorityUrl, cached: AuthorityMetadataRecord | None
    ) -> tuple[OpenIdConfigResponse, MetadataSource]:
        """
        Resolves the endpoint templates of `url`.

        Args:
            url: The canonical authority, already moved to its preferred network host.
            cached: A record previously found for the host, if any.

        Returns:
            tuple[OpenIdConfigResponse, MetadataSource]: The endpoints and where they came from.

        Raises:
            InvalidAuthorityMetadataError: If the configured document cannot be parsed.
            UnableToGetOpenIdConfigError: If the OpenID configuration cannot be fetched or is invalid.
        """
        if (
            cached is not None
            and not cached.is_expired()
            and cached.has_endpoint_metadata()
            and is_same_authority_type(cached, url)
        ):
            logger.debug(f"Endpoint metadata for {url} served from cache")
            return self.rebase(cached, url), MetadataSource.CACHE

        metadata = self.metadata_from_config()
        if metadata is not None:
            logger.debug(f"Endpoint metadata for {url} served from configuration")
            return metadata, MetadataSource.CONFIG

        metadata = await self.metadata_from_network(url)
        logger.debug(f"Endpoint metadata for {url} served from OpenID configuration discovery")
        return metadata, MetadataSource.NETWORK

    @staticmethod
    def rebase(record: AuthorityMetadataRecord, url: CanonicalAuthorityUrl) -> OpenIdConfigResponse:
        metadata = record.endpoint_metadata()
        if record.canonical_authority == url.url:
            return metadata
        return OpenIdConfigResponse(
            authorization_endpoint=rebase_endpoint(metadata.authorization_endpoint, record.canonical_authority, url),
            token_endpoint=rebase_endpoint(metadata.token_endpoint, record.canonical_authority, url),
            end_session_endpoint=(
                rebase_endpoint(metadata.end_session_endpoint, record.canonical_authority, url)
                if metadata.end_session_endpoint
                else None
            ),
            issuer=rebase_endpoint(metadata.issuer, record.canonical_authority, url),
        )

    def metadata_from_config(self) -> OpenIdConfigResponse | None:
        """
        Parses the configured authority metadata, if any.

        Raises:
            InvalidAuthorityMetadataError: If the configured document cannot be parsed.
        """
        if not self.config.authority_metadata:
            return None
        try:
            return OpenIdConfigResponse.model_validate_json(self.config.authority_metadata)
        except ValidationError as e:
            raise InvalidAuthorityMetadataError(
                f"Invalid authorityMetadata provided. Must be a JSON OpenID configuration response: {e}"
            ) from e

    async def metadata_from_network(self, url: CanonicalAuthorityUrl) -> OpenIdConfigResponse:
        """
        Fetches the well-known OpenID configuration document.

        Raises:
            UnableToGetOpenIdConfigError: If the request fails or the document is invalid.
        """
        endpoint = openid_configuration_endpoint(url, self.config.protocol_mode)
        try:
            payload = await self.fetcher(endpoint)
            return OpenIdConfigResponse.model_validate(payload)
        except Exception as e:
            logger.warning(f"OpenID configuration discovery at {endpoint} failed: {e}")
            raise UnableToGetOpenIdConfigError(
                f"Could not retrieve endpoints. Check your authority and verify the .well-known/openid-configuration "
                f"endpoint returns the required endpoints. Attempted to retrieve endpoints from: {endpoint}"
            ) from e
