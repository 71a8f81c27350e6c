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
Configuration for the coreason-authority package.
"""

from urllib.parse import urlparse

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from coreason_authority.models import ProtocolMode


class AuthorityConfig(BaseSettings):
    """
    Caller-supplied trust and discovery configuration for an Authority.

    Attributes:
        protocol_mode (ProtocolMode): AAD (default) or generic OIDC discovery.
        known_authorities (list[str]): Hosts trusted without instance discovery.
        cloud_discovery_metadata (str | None): Raw instance discovery document (JSON).
        authority_metadata (str | None): Raw OpenID configuration document (JSON).
        instance_discovery_endpoint (str): Endpoint queried to validate unknown hosts.
        instance_discovery_api_version (str): `api-version` sent to the instance discovery endpoint.
        metadata_ttl_seconds (int): Lifetime of a persisted authority metadata record.
    """

    model_config = SettingsConfigDict(
        env_prefix="COREASON_AUTHORITY_",
        case_sensitive=False,
        frozen=True,
    )

    protocol_mode: ProtocolMode = ProtocolMode.AAD
    known_authorities: list[str] = Field(default_factory=list)
    cloud_discovery_metadata: str | None = None
    authority_metadata: str | None = None
    instance_discovery_endpoint: str = "https://login.microsoftonline.com/common/discovery/instance"
    instance_discovery_api_version: str = "1.1"
    metadata_ttl_seconds: int = Field(default=86400, gt=0)

    @field_validator("known_authorities")
    @classmethod
    def normalize_known_authorities(cls, v: list[str]) -> list[str]:
        """
        Reduces every entry to its host[:port], lower-cased.
        Entries may be given as bare hosts or as full authority URLs.

        Args:
            v: The configured entries.

        Returns:
            The normalized host list, without blanks.
        """
        hosts = []
        for entry in v:
            entry = entry.strip().lower()
            if not entry:
                continue
            if "://" not in entry:
                entry = f"https://{entry}"
            parsed = urlparse(entry)
            hosts.append(parsed.netloc or entry)
        return hosts

    @field_validator("cloud_discovery_metadata", "authority_metadata")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            return None
        return v

    @field_validator("instance_discovery_endpoint")
    @classmethod
    def validate_https(cls, v: str) -> str:
        """
        Ensures that the instance discovery endpoint uses HTTPS.
        """
        if not v.startswith("https://"):
            raise ValueError("HTTPS is required for the instance discovery endpoint.")
        return v
