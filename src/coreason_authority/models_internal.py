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
Wire schemas for the documents exchanged with the Identity Provider.
These are not exposed in the public API.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class OpenIdConfigResponse(BaseModel):
    """
    Subset of .well-known/openid-configuration consumed by the authority layer.

    AAD documents carry literal `{tenant}` placeholders in every URL; B2C documents
    are already qualified with the tenant and policy path.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    authorization_endpoint: str = Field(..., min_length=1, description="The authorization endpoint URL.")
    token_endpoint: str = Field(..., min_length=1, description="The token endpoint URL.")
    issuer: str = Field(..., min_length=1, description="The OIDC issuer URL.")
    end_session_endpoint: str | None = Field(default=None, description="The end session (logout) endpoint URL.")


class CloudDiscoveryMetadata(BaseModel):
    """
    One alias group of a cloud instance discovery document.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    preferred_network: str = Field(..., min_length=1, description="Host used for outbound requests.")
    preferred_cache: str = Field(..., min_length=1, description="Host used to partition the cache.")
    aliases: list[str] = Field(..., min_length=1, description="Hosts equivalent to each other.")

    @field_validator("aliases")
    @classmethod
    def dedupe_aliases(cls, v: list[str]) -> list[str]:
        # Order is preserved so the persisted record stays stable
        return list(dict.fromkeys(v))


class CloudInstanceDiscoveryResponse(BaseModel):
    """
    Response of the instance discovery endpoint (also the shape of the
    `cloud_discovery_metadata` configuration string).
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    tenant_discovery_endpoint: str | None = None
    metadata: list[CloudDiscoveryMetadata] = Field(default_factory=list)

    def metadata_for_host(self, host: str) -> CloudDiscoveryMetadata | None:
        """
        Returns the alias group listing `host` (case-insensitive), or None if no group does.
        """
        host = host.lower()
        for group in self.metadata:
            if host in (alias.lower() for alias in group.aliases):
                return group
        return None
