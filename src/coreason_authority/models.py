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
Data models for the coreason-authority package.
"""

import time
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from coreason_authority.models_internal import CloudDiscoveryMetadata, OpenIdConfigResponse


class ProtocolMode(StrEnum):
    AAD = "AAD"
    OIDC = "OIDC"


class AuthorityType(StrEnum):
    DEFAULT = "default"
    ADFS = "adfs"


class AuthorityState(StrEnum):
    UNINITIALIZED = "uninitialized"
    RESOLUTION_IN_FLIGHT = "resolution_in_flight"
    RESOLVED = "resolved"
    FAILED = "failed"


class MetadataSource(StrEnum):
    """Where a half of the authority metadata came from."""

    CACHE = "cache"
    CONFIG = "config"
    NETWORK = "network"


class AuthorityMetadataRecord(BaseModel):
    """
    The cached unit of authority metadata, keyed by (client id, preferred cache host).

    A record holds two independently populated halves: the cloud discovery half
    (aliases and preferred hosts) and the endpoint half (OIDC endpoints, stored
    untouched, i.e. with their `{tenant}` placeholders).

    Attributes:
        aliases (list[str]): Hosts equivalent to this authority.
        preferred_network (str): Host to use for outbound requests.
        preferred_cache (str): Host used to partition caches.
        aliases_from_network (bool): Whether the cloud half came from instance discovery.
        authorization_endpoint (str): Templated authorization endpoint.
        token_endpoint (str): Templated token endpoint.
        end_session_endpoint (str | None): Templated end session endpoint, if advertised.
        issuer (str): Templated issuer.
        endpoints_from_network (bool): Whether the endpoint half came from OIDC discovery.
        canonical_authority (str): The canonical authority the endpoints were resolved for.
        expires_at (float): Unix timestamp after which the record counts as absent.
    """

    model_config = ConfigDict(validate_assignment=True)

    aliases: list[str] = Field(default_factory=list)
    preferred_network: str = ""
    preferred_cache: str = ""
    aliases_from_network: bool = False
    authorization_endpoint: str = ""
    token_endpoint: str = ""
    end_session_endpoint: str | None = None
    issuer: str = ""
    endpoints_from_network: bool = False
    canonical_authority: str = ""
    expires_at: float = 0.0

    def update_cloud_discovery_metadata(self, metadata: CloudDiscoveryMetadata, from_network: bool) -> None:
        self.aliases = list(metadata.aliases)
        self.preferred_network = metadata.preferred_network
        self.preferred_cache = metadata.preferred_cache
        self.aliases_from_network = from_network

    def update_endpoint_metadata(self, metadata: OpenIdConfigResponse, from_network: bool) -> None:
        self.authorization_endpoint = metadata.authorization_endpoint
        self.token_endpoint = metadata.token_endpoint
        self.end_session_endpoint = metadata.end_session_endpoint
        self.issuer = metadata.issuer
        self.endpoints_from_network = from_network

    def update_canonical_authority(self, canonical_authority: str) -> None:
        self.canonical_authority = canonical_authority

    def reset_expires_at(self, ttl_seconds: int) -> None:
        self.expires_at = time.time() + ttl_seconds

    def is_expired(self) -> bool:
        return self.expires_at <= time.time()

    def lists_alias(self, host: str) -> bool:
        host = host.lower()
        return any(alias.lower() == host for alias in self.aliases)

    def has_cloud_metadata(self) -> bool:
        return bool(self.aliases and self.preferred_network and self.preferred_cache)

    def has_endpoint_metadata(self) -> bool:
        return bool(self.authorization_endpoint and self.token_endpoint and self.issuer)

    def cloud_metadata(self) -> CloudDiscoveryMetadata:
        return CloudDiscoveryMetadata(
            preferred_network=self.preferred_network,
            preferred_cache=self.preferred_cache,
            aliases=self.aliases,
        )

    def endpoint_metadata(self) -> OpenIdConfigResponse:
        return OpenIdConfigResponse(
            authorization_endpoint=self.authorization_endpoint,
            token_endpoint=self.token_endpoint,
            end_session_endpoint=self.end_session_endpoint,
            issuer=self.issuer,
        )
