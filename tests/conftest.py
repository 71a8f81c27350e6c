# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_authority

import json
from typing import Any
from unittest.mock import AsyncMock

import pytest

from coreason_authority.cache import AuthorityMetadataCache
from coreason_authority.config import AuthorityConfig
from coreason_authority.transport import HttpxNetworkTransport

CLIENT_ID = "0813e1d1-ad72-46a9-8665-399bba48c201"
DEFAULT_AUTHORITY_HOST = "login.microsoftonline.com"
DEFAULT_AUTHORITY = f"https://{DEFAULT_AUTHORITY_HOST}/common/"
INSTANCE_DISCOVERY_ENDPOINT = "https://login.microsoftonline.com/common/discovery/instance"


@pytest.fixture
def openid_config() -> dict[str, Any]:
    """A standard AAD v2.0 OpenID configuration document with `{tenant}` placeholders."""
    return {
        "token_endpoint": "https://login.microsoftonline.com/{tenant}/oauth2/v2.0/token",
        "jwks_uri": "https://login.microsoftonline.com/{tenant}/discovery/v2.0/keys",
        "end_session_endpoint": "https://login.microsoftonline.com/{tenant}/oauth2/v2.0/logout",
        "issuer": "https://login.microsoftonline.com/{tenant}/v2.0",
        "authorization_endpoint": "https://login.microsoftonline.com/{tenant}/oauth2/v2.0/authorize",
        "userinfo_endpoint": "https://graph.microsoft.com/oidc/userinfo",
        "scopes_supported": ["openid", "profile", "email", "offline_access"],
        "cloud_instance_name": "microsoftonline.com",
    }


@pytest.fixture
def b2c_openid_config() -> dict[str, Any]:
    """A B2C OpenID configuration document, already qualified with tenant and policy."""
    base = "https://login.microsoftonline.com/tfp/msidlabb2c.onmicrosoft.com/b2c_1_sisopolicy"
    return {
        "authorization_endpoint": f"{base}/oauth2/v2.0/authorize",
        "token_endpoint": f"{base}/oauth2/v2.0/token",
        "end_session_endpoint": f"{base}/oauth2/v2.0/logout",
        "issuer": "https://login.microsoftonline.com/tfp/00000000-0000-0000-0000-000000000000/b2c_1_sisopolicy/v2.0/",
    }


@pytest.fixture
def tenant_discovery() -> dict[str, Any]:
    """An instance discovery response for the public and China clouds."""
    return {
        "tenant_discovery_endpoint": "https://login.microsoftonline.com/{tenant}/v2.0/.well-known/openid-configuration",
        "api-version": "1.1",
        "metadata": [
            {
                "preferred_network": "login.windows.net",
                "preferred_cache": "sts.windows.net",
                "aliases": ["login.microsoftonline.com", "login.windows.net", "sts.windows.net"],
            },
            {
                "preferred_network": "login.partner.microsoftonline.cn",
                "preferred_cache": "login.partner.microsoftonline.cn",
                "aliases": ["login.partner.microsoftonline.cn", "login.chinacloudapi.cn"],
            },
        ],
    }


@pytest.fixture
def network() -> AsyncMock:
    return AsyncMock(spec=HttpxNetworkTransport)


@pytest.fixture
def cache() -> AuthorityMetadataCache:
    return AuthorityMetadataCache(CLIENT_ID)


@pytest.fixture
def config() -> AuthorityConfig:
    """Trusts the default host through known authorities only."""
    return AuthorityConfig(known_authorities=[DEFAULT_AUTHORITY_HOST])


@pytest.fixture
def untrusted_config() -> AuthorityConfig:
    """No static trust source: instance discovery is required."""
    return AuthorityConfig()


def dumps(document: dict[str, Any]) -> str:
    return json.dumps(document)
