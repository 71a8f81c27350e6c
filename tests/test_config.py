# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_authority

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from coreason_authority.config import AuthorityConfig
from coreason_authority.models import ProtocolMode


def test_config_defaults() -> None:
    with patch.dict(os.environ, {}, clear=True):
        config = AuthorityConfig()
    assert config.protocol_mode is ProtocolMode.AAD
    assert config.known_authorities == []
    assert config.cloud_discovery_metadata is None
    assert config.authority_metadata is None
    assert config.instance_discovery_endpoint == "https://login.microsoftonline.com/common/discovery/instance"
    assert config.instance_discovery_api_version == "1.1"
    assert config.metadata_ttl_seconds == 86400


def test_config_loading_from_env() -> None:
    """Test loading configuration from environment variables."""
    with patch.dict(
        os.environ,
        {
            "COREASON_AUTHORITY_PROTOCOL_MODE": "OIDC",
            "COREASON_AUTHORITY_KNOWN_AUTHORITIES": '["login.contoso.com"]',
            "COREASON_AUTHORITY_METADATA_TTL_SECONDS": "60",
        },
        clear=True,
    ):
        config = AuthorityConfig()
    assert config.protocol_mode is ProtocolMode.OIDC
    assert config.known_authorities == ["login.contoso.com"]
    assert config.metadata_ttl_seconds == 60


def test_config_case_insensitive_env() -> None:
    with patch.dict(os.environ, {"coreason_authority_protocol_mode": "OIDC"}, clear=True):
        config = AuthorityConfig()
    assert config.protocol_mode is ProtocolMode.OIDC


def test_known_authorities_normalized_to_hosts() -> None:
    config = AuthorityConfig(
        known_authorities=[
            "login.microsoftonline.com",
            "https://Contoso.b2clogin.com/contoso.onmicrosoft.com/",
            "fabrikam.com:8443/tenant",
            "  ",
        ]
    )
    assert config.known_authorities == [
        "login.microsoftonline.com",
        "contoso.b2clogin.com",
        "fabrikam.com:8443",
    ]


def test_blank_metadata_becomes_none() -> None:
    config = AuthorityConfig(cloud_discovery_metadata="", authority_metadata="   ")
    assert config.cloud_discovery_metadata is None
    assert config.authority_metadata is None


def test_instance_discovery_endpoint_requires_https() -> None:
    with pytest.raises(ValidationError) as exc:
        AuthorityConfig(instance_discovery_endpoint="http://login.microsoftonline.com/common/discovery/instance")
    assert "HTTPS is required" in str(exc.value)


def test_ttl_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        AuthorityConfig(metadata_ttl_seconds=0)


def test_invalid_protocol_mode() -> None:
    with pytest.raises(ValidationError):
        AuthorityConfig(protocol_mode="SAML")


def test_config_is_frozen() -> None:
    config = AuthorityConfig()
    with pytest.raises(ValidationError):
        config.protocol_mode = ProtocolMode.OIDC  # type: ignore[misc]
