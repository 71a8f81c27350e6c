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
Canonicalization and validation of authority URLs.
"""

from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict

from coreason_authority.exceptions import AuthorityUrlParseError, EmptyAuthorityError, InsecureAuthorityError
from coreason_authority.models import AuthorityType

HTTPS_SCHEME = "https"
ADFS_PATH_SEGMENT = "adfs"


class CanonicalAuthorityUrl(BaseModel):
    """
    Validated, normalized form of an authority URL.

    Host casing is preserved. Query and fragment never survive canonicalization;
    `query` and `fragment` are always None so callers can observe that.

    Attributes:
        scheme (str): Always "https".
        host_name_and_port (str): The host, with the port if one was given.
        path_segments (tuple[str, ...]): Non-empty path segments, in order.
        absolute_path (str): The normalized path, always ending with "/".
    """

    model_config = ConfigDict(frozen=True)

    scheme: str = HTTPS_SCHEME
    host_name_and_port: str
    path_segments: tuple[str, ...] = ()
    absolute_path: str = "/"
    query: None = None
    fragment: None = None

    @property
    def url(self) -> str:
        return f"{self.scheme}://{self.host_name_and_port}{self.absolute_path}"

    @property
    def tenant(self) -> str | None:
        """The first path segment, or None for a bare host."""
        return self.path_segments[0] if self.path_segments else None

    @property
    def authority_type(self) -> AuthorityType:
        if self.tenant is not None and self.tenant.lower() == ADFS_PATH_SEGMENT:
            return AuthorityType.ADFS
        return AuthorityType.DEFAULT

    @property
    def is_policy_qualified(self) -> bool:
        """
        True for B2C-style authorities (tenant plus policy path).
        Their discovered endpoints are already fully qualified.
        """
        return len(self.path_segments) > 1

    def with_host(self, host_name_and_port: str) -> "CanonicalAuthorityUrl":
        """
        Returns a copy pointing at another host, keeping the path.
        """
        return canonicalize(f"{self.scheme}://{host_name_and_port}{self.absolute_path}")

    def __str__(self) -> str:
        return self.url


def canonicalize(raw: str) -> CanonicalAuthorityUrl:
    """
    Parses, validates and normalizes an authority string.

    Args:
        raw: The authority, e.g. https://login.microsoftonline.com/common

    Returns:
        CanonicalAuthorityUrl: The canonical form; its `url` always ends with "/".

    Raises:
        EmptyAuthorityError: If `raw` is empty.
        AuthorityUrlParseError: If `raw` is not a well-formed absolute URL.
        InsecureAuthorityError: If the scheme is not https.
    """
    if not raw or not raw.strip():
        raise EmptyAuthorityError("URL was empty or null.")

    value = raw.strip()
    try:
        parts = urlsplit(value)
    except ValueError as e:
        # The scheme outranks any other defect of a non-https URL
        scheme, separator, _ = value.partition("://")
        if separator and scheme.lower() != HTTPS_SCHEME:
            raise InsecureAuthorityError(f"Authority URIs must use https: {value}") from e
        raise AuthorityUrlParseError(f"URL could not be parsed into appropriate segments: {value}") from e

    if not parts.scheme:
        raise AuthorityUrlParseError(f"URL could not be parsed into appropriate segments: {value}")

    if parts.scheme.lower() != HTTPS_SCHEME:
        raise InsecureAuthorityError(f"Authority URIs must use https: {value}")

    try:
        # Accessing port validates it
        _ = parts.port
    except ValueError as e:
        raise AuthorityUrlParseError(f"URL could not be parsed into appropriate segments: {value}") from e

    netloc = parts.netloc
    if not netloc or "@" in netloc or any(c.isspace() for c in netloc) or not parts.hostname:
        raise AuthorityUrlParseError(f"URL could not be parsed into appropriate segments: {value}")

    segments = tuple(segment for segment in parts.path.split("/") if segment)
    if any(c.isspace() for segment in segments for c in segment):
        raise AuthorityUrlParseError(f"URL could not be parsed into appropriate segments: {value}")

    absolute_path = "/" + "".join(f"{segment}/" for segment in segments)

    return CanonicalAuthorityUrl(
        host_name_and_port=netloc,
        path_segments=segments,
        absolute_path=absolute_path,
    )


def path_segments_of(url: str) -> tuple[str, ...]:
    """
    Returns the non-empty path segments of an arbitrary URL string, without validation.
    Used on persisted canonical authorities, which were validated when written.
    """
    try:
        path = urlsplit(url).path
    except ValueError:
        return ()
    return tuple(segment for segment in path.split("/") if segment)
