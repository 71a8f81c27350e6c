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
Network transport used for instance and OpenID configuration discovery.
"""

import json
from typing import Any, Protocol

import httpx
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor

from coreason_authority.exceptions import NetworkError, OversizedResponseError
from coreason_authority.utils.logger import logger

MAX_RESPONSE_BYTES = 1_000_000


class NetworkTransport(Protocol):
    """
    Protocol for the HTTP capability consumed by the authority layer.
    Implementations own timeouts and cancellation; failures must raise.
    """

    async def get_json(
        self, url: str, params: dict[str, str] | None = None, headers: dict[str, str] | None = None
    ) -> Any: ...

    async def post_json(
        self, url: str, data: dict[str, str] | None = None, headers: dict[str, str] | None = None
    ) -> Any: ...


class HttpxNetworkTransport:
    """
    NetworkTransport over an `httpx.AsyncClient`.

    Bodies are streamed and capped at `max_response_bytes`; every httpx failure
    is re-raised as NetworkError. No retries are attempted.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
        max_response_bytes: int = MAX_RESPONSE_BYTES,
    ) -> None:
        """
        Initialize the HttpxNetworkTransport.

        Args:
            client: External async client (optional). If not provided, an instrumented client is created and owned.
            timeout: Timeout in seconds for the owned client. Ignored for an external client.
            max_response_bytes: Largest accepted response body.
        """
        self._internal_client = client is None
        if client is None:
            client = httpx.AsyncClient(timeout=timeout)
            # Instrument the owned client for distributed tracing
            HTTPXClientInstrumentor().instrument_client(client)
        self._client = client
        self.max_response_bytes = max_response_bytes

    async def __aenter__(self) -> "HttpxNetworkTransport":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._internal_client:
            await self._client.aclose()

    async def get_json(
        self, url: str, params: dict[str, str] | None = None, headers: dict[str, str] | None = None
    ) -> Any:
        return await self._fetch_json("GET", url, params=params, headers=headers)

    async def post_json(
        self, url: str, data: dict[str, str] | None = None, headers: dict[str, str] | None = None
    ) -> Any:
        return await self._fetch_json("POST", url, data=data, headers=headers)

    async def _fetch_json(self, method: str, url: str, **kwargs: Any) -> Any:
        """
        Sends the request and decodes the JSON body with a size limit.

        Raises:
            OversizedResponseError: If the body exceeds `max_response_bytes`.
            NetworkError: On any transport, status or decoding failure.
        """
        try:
            async with self._client.stream(method, url, **kwargs) as response:
                response.raise_for_status()

                content_length = response.headers.get("Content-Length")
                if content_length and content_length.isdigit() and int(content_length) > self.max_response_bytes:
                    raise OversizedResponseError(f"Response from {url} is too large ({content_length} bytes)")

                content = bytearray()
                async for chunk in response.aiter_bytes():
                    content.extend(chunk)
                    if len(content) > self.max_response_bytes:
                        raise OversizedResponseError(f"Response from {url} is too large")

            return json.loads(content)
        except httpx.HTTPError as e:
            logger.debug(f"{method} {url} failed: {e}")
            raise NetworkError(f"{method} {url} failed: {e}") from e
        except ValueError as e:
            # JSONDecodeError, or UnicodeDecodeError for bodies that are not UTF-8/16/32
            raise NetworkError(f"{method} {url} returned invalid JSON: {e}") from e
