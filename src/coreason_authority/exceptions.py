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
Custom exceptions for the coreason-authority package.
"""


class CoreasonAuthorityError(Exception):
    """Base exception for all coreason-authority errors."""

    error_code = "unknown_error"


class AuthorityConfigurationError(CoreasonAuthorityError):
    """
    Raised when caller-supplied input is invalid.
    Only fixing the input (authority string or AuthorityConfig) recovers from it.
    """


class EmptyAuthorityError(AuthorityConfigurationError):
    """Raised when the authority string is empty."""

    error_code = "empty_url_error"


class AuthorityUrlParseError(AuthorityConfigurationError):
    """Raised when the authority string is not a well-formed URL."""

    error_code = "url_parse_error"


class InsecureAuthorityError(AuthorityConfigurationError):
    """Raised when the authority does not use the https scheme."""

    error_code = "authority_uri_insecure"


class InvalidCloudDiscoveryMetadataError(AuthorityConfigurationError):
    """Raised when the configured cloud discovery metadata is not valid JSON."""

    error_code = "invalid_cloud_discovery_metadata"


class InvalidAuthorityMetadataError(AuthorityConfigurationError):
    """Raised when the configured authority (endpoint) metadata is not valid JSON."""

    error_code = "invalid_authority_metadata"


class UntrustedAuthorityError(AuthorityConfigurationError):
    """
    Raised when no trust source vouches for the authority host.
    Known authorities, cloud discovery metadata, cache and instance discovery all failed.
    """

    error_code = "untrusted_authority"


class AuthorityResolutionError(CoreasonAuthorityError):
    """Raised for environment or sequencing problems during resolution."""


class EndpointResolutionError(AuthorityResolutionError):
    """Raised when an endpoint is requested before discovery completed."""

    error_code = "endpoints_resolution_error"


class UnableToGetOpenIdConfigError(AuthorityResolutionError):
    """Raised when the OpenID configuration document could not be retrieved."""

    error_code = "openid_config_error"


class NetworkError(CoreasonAuthorityError):
    """Raised by the network transport when a request fails."""

    error_code = "network_error"


class OversizedResponseError(NetworkError):
    """Raised when an HTTP response is too large."""
