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
Authority metadata cache: key computation, expiry handling and a default in-memory store.
"""

from typing import Protocol

from pydantic import ValidationError

from coreason_authority.models import AuthorityMetadataRecord
from coreason_authority.utils.logger import logger

AUTHORITY_METADATA_CACHE_KEY = "authority-metadata"


def compute_cache_key(client_id: str, host: str) -> str:
    """
    Builds the storage key of an authority metadata record.

    Args:
        client_id: The OAuth client the record belongs to.
        host: The authority host (the preferred cache host once known).

    Returns:
        str: `authority-metadata-{client_id}-{host}`.
    """
    return f"{AUTHORITY_METADATA_CACHE_KEY}-{client_id}-{host}"


class MetadataStoreProtocol(Protocol):
    """
    Protocol for the key-value backend holding serialized records.
    Implementations must tolerate concurrent access; last writer wins per key.
    """

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def keys(self) -> list[str]: ...


class MemoryMetadataStore:
    """
    In-memory implementation of MetadataStoreProtocol.
    Process-local; entries are never evicted.
    """

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self._entries.get(key)

    async def set(self, key: str, value: str) -> None:
        self._entries[key] = value

    async def keys(self) -> list[str]:
        return list(self._entries)


class AuthorityMetadataCache:
    """
    Reads and writes AuthorityMetadataRecord entries for one client.

    Expired records are never returned: callers see them as misses even though
    they stay in the store until overwritten.

    Attributes:
        client_id (str): The OAuth client id used in every key.
        store (MetadataStoreProtocol): The storage backend.
    """

    def __init__(self, client_id: str, store: MetadataStoreProtocol | None = None) -> None:
        """
        Initialize the AuthorityMetadataCache.

        Args:
            client_id: The OAuth client id.
            store: Storage backend. Defaults to MemoryMetadataStore.
        """
        self.client_id = client_id
        self.store: MetadataStoreProtocol = store if store is not None else MemoryMetadataStore()

    def compute_key(self, host: str) -> str:
        return compute_cache_key(self.client_id, host)

    async def get(self, key: str) -> AuthorityMetadataRecord | None:
        """
        Returns the non-expired record stored under `key`.

        Args:
            key: A key produced by `compute_key`.

        Returns:
            AuthorityMetadataRecord | None: The record, or None if absent, expired or unreadable.
        """
        raw = await self.store.get(key)
        if raw is None:
            return None

        try:
            record = AuthorityMetadataRecord.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Ignoring unreadable authority metadata under {key}: {e}")
            return None

        if record.is_expired():
            logger.debug(f"Authority metadata under {key} has expired")
            return None
        return record

    async def put(self, key: str, record: AuthorityMetadataRecord) -> None:
        await self.store.set(key, record.model_dump_json())
        logger.debug(f"Stored authority metadata under {key}")

    async def find_by_alias(self, host: str) -> AuthorityMetadataRecord | None:
        """
        Finds the record for `host`, either stored under its own key or listing it as an alias.

        Args:
            host: The authority host as the caller spelled it.

        Returns:
            AuthorityMetadataRecord | None: The first non-expired match, or None.
        """
        direct_key = self.compute_key(host)
        record = await self.get(direct_key)
        if record is not None:
            return record

        prefix = self.compute_key("")
        for key in await self.store.keys():
            if key == direct_key or not key.startswith(prefix):
                continue
            record = await self.get(key)
            if record is not None and record.lists_alias(host):
                return record
        return None
