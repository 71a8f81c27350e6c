# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_authority

import time
from typing import Any

import pytest
from pydantic import ValidationError

from coreason_authority.models import AuthorityMetadataRecord
from coreason_authority.models_internal import (
    CloudDiscoveryMetadata,
    CloudInstanceDiscoveryResponse,
    OpenIdConfigResponse,
)


def test_new_record_is_empty_and_expired() -> None:
    record = AuthorityMetadataRecord()
    assert record.is_expired() is True
    assert record.has_cloud_metadata() is False
    assert record.has_endpoint_metadata() is False


def test_reset_expires_at() -> None:
    record = AuthorityMetadataRecord()
    before = time.time()
    record.reset_expires_at(3600)
    assert record.is_expired() is False
    assert before + 3600 <= record.expires_at <= time.time() + 3600


def test_past_expiry_is_expired() -> None:
    record = AuthorityMetadataRecord(expires_at=time.time() - 1)
    assert record.is_expired() is True


def test_update_cloud_discovery_metadata() -> None:
    record = AuthorityMetadataRecord()
    record.update_cloud_discovery_metadata(
        CloudDiscoveryMetadata(
            preferred_network="login.windows.net",
            preferred_cache="sts.windows.net",
            aliases=["login.microsoftonline.com", "login.windows.net", "sts.windows.net"],
        ),
        from_network=True,
    )
    assert record.has_cloud_metadata() is True
    assert record.has_endpoint_metadata() is False
    assert record.aliases_from_network is True
    assert record.cloud_metadata().preferred_cache == "sts.windows.net"
    assert record.lists_alias("LOGIN.windows.net") is True
    assert record.lists_alias("evil.example.com") is False


def test_update_endpoint_metadata(openid_config: dict[str, Any]) -> None:
    record = AuthorityMetadataRecord()
    record.update_endpoint_metadata(OpenIdConfigResponse.model_validate(openid_config), from_network=False)
    assert record.has_endpoint_metadata() is True
    assert record.endpoints_from_network is False
    assert record.authorization_endpoint == openid_config["authorization_endpoint"]
    assert record.endpoint_metadata().end_session_endpoint == openid_config["end_session_endpoint"]


def test_openid_config_requires_core_endpoints() -> None:
    with pytest.raises(ValidationError):
        OpenIdConfigResponse.model_validate({"authorization_endpoint": "https://a", "issuer": "https://i"})
    with pytest.raises(ValidationError):
        OpenIdConfigResponse.model_validate(
            {"authorization_endpoint": "", "token_endpoint": "https://t", "issuer": "https://i"}
        )


def test_openid_config_end_session_is_optional() -> None:
    config = OpenIdConfigResponse.model_validate(
        {"authorization_endpoint": "https://a", "token_endpoint": "https://t", "issuer": "https://i"}
    )
    assert config.end_session_endpoint is None


def test_cloud_discovery_metadata_dedupes_aliases() -> None:
    group = CloudDiscoveryMetadata(preferred_network="a", preferred_cache="a", aliases=["a", "b", "a"])
    assert group.aliases == ["a", "b"]


def test_cloud_discovery_metadata_requires_aliases() -> None:
    with pytest.raises(ValidationError):
        CloudDiscoveryMetadata(preferred_network="a", preferred_cache="a", aliases=[])


def test_metadata_for_host(tenant_discovery: dict[str, Any]) -> None:
    document = CloudInstanceDiscoveryResponse.model_validate(tenant_discovery)
    group = document.metadata_for_host("sts.windows.net")
    assert group is not None
    assert group.preferred_network == "login.windows.net"
    assert document.metadata_for_host("Login.ChinaCloudAPI.cn") is document.metadata[1]
    assert document.metadata_for_host("custom-domain.microsoft.com") is None


def test_instance_discovery_error_document_has_no_metadata() -> None:
    document = CloudInstanceDiscoveryResponse.model_validate(
        {"error": "invalid_instance", "error_description": "AADSTS50049: Unknown or invalid instance."}
    )
    assert document.metadata == []
