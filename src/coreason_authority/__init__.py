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
Trust establishment for OAuth2/OIDC authorities: canonicalization, cloud instance discovery and endpoint discovery.
"""

__version__ = "0.1.0"
__author__ = "Gowtham A Rao"
__email__ = "gowtham.rao@coreason.ai"

from .authority import Authority, create_discovered_authority
from .cache import AuthorityMetadataCache, MemoryMetadataStore, compute_cache_key
from .config import AuthorityConfig
from .exceptions import (
    CoreasonAuthorityError,
    EndpointResolutionError,
    UnableToGetOpenIdConfigError,
    UntrustedAuthorityError,
)
from .models import AuthorityMetadataRecord, AuthorityState, ProtocolMode
from .transport import HttpxNetworkTransport, NetworkTransport
from .url import CanonicalAuthorityUrl, canonicalize

__all__ = [
    "Authority",
    "AuthorityConfig",
    "AuthorityMetadataCache",
    "AuthorityMetadataRecord",
    "AuthorityState",
    "CanonicalAuthorityUrl",
    "CoreasonAuthorityError",
    "EndpointResolutionError",
    "HttpxNetworkTransport",
    "MemoryMetadataStore",
    "NetworkTransport",
    "ProtocolMode",
    "UnableToGetOpenIdConfigError",
    "UntrustedAuthorityError",
    "canonicalize",
    "compute_cache_key",
    "create_discovered_authority",
]
