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
Authority component: resolves an authority URL into trusted aliases and OpenID endpoints.
"""

import anyio
from opentelemetry import trace
from opentelemetry.trace import Span, Status, StatusCode

from coreason_authority.cache import AuthorityMetadataCache
from coreason_authority.config import AuthorityConfig
from coreason_authority.endpoint_discovery import (
    EndpointDiscoveryResolver,
    EndpointMetadataFetcher,
    device_code_endpoint_from,
    openid_configuration_endpoint,
    substitute_tenant,
)
from coreason_authority.exceptions import EndpointResolutionError
from coreason_authority.instance_discovery import CloudInstanceResolver, InstanceMetadataFetcher
from coreason_authority.models import (
    AuthorityMetadataRecord,
    AuthorityState,
    AuthorityType,
    MetadataSource,
    ProtocolMode,
)
from coreason_authority.transport import NetworkTransport
from coreason_authority.url import CanonicalAuthorityUrl, canonicalize
from coreason_authority.utils.logger import logger

tracer = trace.get_tracer(__name__)


class Authority:
    """
    An identity provider authority and its discovered metadata.

    Construction only validates the URL. `resolve()` establishes trust through
    cloud instance discovery, moves the authority to its preferred network host,
    then discovers the OpenID endpoints and persists the merged record under the
    preferred cache host. Endpoint accessors fail until `resolve()` succeeded.

    Attributes:
        network (NetworkTransport): Borrowed transport.
        cache (AuthorityMetadataCache): Borrowed metadata cache.
        config (AuthorityConfig): Trust and discovery configuration.
    """

    def __init__(
        self,
        authority: str,
        network: NetworkTransport,
        cache: AuthorityMetadataCache,
        config: AuthorityConfig | None = None,
        instance_fetcher: InstanceMetadataFetcher | None = None,
        endpoint_fetcher: EndpointMetadataFetcher | None = None,
    ) -> None:
        """
        Initialize the Authority.

        Args:
            authority: The authority URL, e.g. https://login.microsoftonline.com/common.
            network: The network transport used by the default fetchers.
            cache: The authority metadata cache.
            config: The configuration. Defaults to `AuthorityConfig()` (environment driven).
            instance_fetcher: Replaces the instance discovery network fetch (optional).
            endpoint_fetcher: Replaces the OpenID configuration network fetch (optional).

        Raises:
            EmptyAuthorityError: If `authority` is empty.
            AuthorityUrlParseError: If `authority` is not a well-formed URL.
            InsecureAuthorityError: If `authority` is not https.
        """
        self._url = canonicalize(authority)
        self.network = network
        self.cache = cache
        self.config = config if config is not None else AuthorityConfig()
        self.instance_resolver = CloudInstanceResolver(self.config, network, instance_fetcher)
        self.endpoint_resolver = EndpointDiscoveryResolver(self.config, network, endpoint_fetcher)
        self._state = AuthorityState.UNINITIALIZED
        self._metadata: AuthorityMetadataRecord | None = None
        self._lock: anyio.Lock | None = None
        self._error: Exception | None = None

    @property
    def canonical_authority(self) -> str:
        return self._url.url

    @canonical_authority.setter
    def canonical_authority(self, value: str) -> None:
        # Validate first so a rejected value leaves the current state untouched
        self._url = canonicalize(value)
        self._state = AuthorityState.UNINITIALIZED
        self._metadata = None
        self._error = None

    @property
    def canonical_authority_url_components(self) -> CanonicalAuthorityUrl:
        return self._url

    @property
    def tenant(self) -> str | None:
        return self._url.tenant

    @property
    def hostname_and_port(self) -> str:
        return self._url.host_name_and_port

    @property
    def authority_type(self) -> AuthorityType:
        return self._url.authority_type

    @property
    def protocol_mode(self) -> ProtocolMode:
        return self.config.protocol_mode

    @property
    def state(self) -> AuthorityState:
        return self._state

    @property
    def openid_configuration_endpoint(self) -> str:
        return openid_configuration_endpoint(self._url, self.config.protocol_mode)

    def discovery_complete(self) -> bool:
        """
        True if both cloud and endpoint metadata have been resolved. Never raises.
        """
        return (
            self._state is AuthorityState.RESOLVED
            and self._metadata is not None
            and self._metadata.has_cloud_metadata()
            and self._metadata.has_endpoint_metadata()
        )

    def _resolved_metadata(self) -> AuthorityMetadataRecord:
        if not self.discovery_complete():
            raise EndpointResolutionError(
                f"Endpoints cannot be resolved for {self.canonical_authority}: discovery incomplete."
            )
        return self._metadata  # type: ignore[return-value]

    @property
    def authorization_endpoint(self) -> str:
        return substitute_tenant(self._resolved_metadata().authorization_endpoint, self._url)

    @property
    def token_endpoint(self) -> str:
        return substitute_tenant(self._resolved_metadata().token_endpoint, self._url)

    @property
    def end_session_endpoint(self) -> str:
        endpoint = self._resolved_metadata().end_session_endpoint
        if not endpoint:
            raise EndpointResolutionError(f"{self.canonical_authority} does not advertise an end_session_endpoint.")
        return substitute_tenant(endpoint, self._url)

    @property
    def device_code_endpoint(self) -> str:
        return device_code_endpoint_from(self.token_endpoint)

    @property
    def self_signed_jwt_audience(self) -> str:
        return substitute_tenant(self._resolved_metadata().issuer, self._url)

    def is_alias(self, host: str) -> bool:
        """
        True if `host` is one of the resolved aliases (case-insensitive).
        Returns False, without raising, while discovery is incomplete.
        """
        if not self.discovery_complete():
            return False
        return self._resolved_metadata().lists_alias(host)

    def preferred_cache_host(self) -> str:
        """
        Returns the host used to partition caches.

        Raises:
            EndpointResolutionError: If discovery is incomplete.
        """
        return self._resolved_metadata().preferred_cache

    async def resolve(self) -> None:
        """
        Runs cloud instance discovery then endpoint discovery.

        A resolved Authority returns immediately. Concurrent callers on the same
        instance wait for the first resolution. A failed Authority re-raises the
        original error without new requests; construct a new instance (or assign
        `canonical_authority`) to try again.

        Emits an OpenTelemetry span `authority.resolve`.

        Raises:
            InvalidCloudDiscoveryMetadataError: If the configured cloud discovery document is invalid.
            InvalidAuthorityMetadataError: If the configured authority metadata is invalid.
            UntrustedAuthorityError: If no source vouches for the authority host.
            UnableToGetOpenIdConfigError: If the OpenID configuration cannot be fetched.
        """
        if self._lock is None:
            self._lock = anyio.Lock()

        async with self._lock:
            if self._state is AuthorityState.RESOLVED:
                return
            if self._state is AuthorityState.FAILED and self._error is not None:
                raise self._error

            self._state = AuthorityState.RESOLUTION_IN_FLIGHT
            with tracer.start_as_current_span("authority.resolve") as span:
                span.set_attribute("authority.host", self.hostname_and_port)
                try:
                    url, record = await self._resolve_metadata(span)
                except Exception as e:
                    self._state = AuthorityState.FAILED
                    self._metadata = None
                    self._error = e
                    logger.error(f"Authority resolution failed for {self.canonical_authority}: {e}")
                    span.record_exception(e)
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    raise

                self._url = url
                self._metadata = record
                self._state = AuthorityState.RESOLVED
                logger.info(f"Authority {self.canonical_authority} resolved")
                span.set_status(Status(StatusCode.OK))

    async def _resolve_metadata(self, span: Span) -> tuple[CanonicalAuthorityUrl, AuthorityMetadataRecord]:
        original = self._url
        host = original.host_name_and_port
        cached = await self.cache.find_by_alias(host)

        cloud, cloud_source = await self.instance_resolver.resolve(original, cached)
        span.set_attribute("authority.cloud_source", cloud_source.value)

        url = original
        if cloud.preferred_network != host:
            logger.debug(f"Moving authority from {host} to preferred network host {cloud.preferred_network}")
            url = original.with_host(cloud.preferred_network)

        if cached is None and cloud.preferred_cache != host:
            cached = await self.cache.get(self.cache.compute_key(cloud.preferred_cache))

        endpoints, endpoint_source = await self.endpoint_resolver.resolve(url, cached)
        span.set_attribute("authority.endpoint_source", endpoint_source.value)

        record = AuthorityMetadataRecord()
        record.update_cloud_discovery_metadata(
            cloud,
            from_network=self._from_network(cloud_source, cached.aliases_from_network if cached else False),
        )
        record.update_endpoint_metadata(
            endpoints,
            from_network=self._from_network(endpoint_source, cached.endpoints_from_network if cached else False),
        )
        record.update_canonical_authority(url.url)
        if cached is not None and cloud_source is MetadataSource.CACHE and endpoint_source is MetadataSource.CACHE:
            record.expires_at = cached.expires_at
        else:
            record.reset_expires_at(self.config.metadata_ttl_seconds)

        await self.cache.put(self.cache.compute_key(cloud.preferred_cache), record)
        return url, record

    @staticmethod
    def _from_network(source: MetadataSource, cached_flag: bool) -> bool:
        if source is MetadataSource.CACHE:
            return cached_flag
        return source is MetadataSource.NETWORK


async def create_discovered_authority(
    authority: str,
    network: NetworkTransport,
    cache: AuthorityMetadataCache,
    config: AuthorityConfig | None = None,
) -> Authority:
    """
    Creates an Authority and resolves it.

    Returns:
        Authority: A resolved Authority.

    Raises:
        CoreasonAuthorityError: Any construction or resolution error.
    """
    instance = Authority(authority, network, cache, config)
    await instance.resolve()
    return instance
