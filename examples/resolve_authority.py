# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_authority

import asyncio
import contextlib
import os
import sys

# Add src to path for running directly
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "../src")))

from anyio import create_task_group

from coreason_authority import (
    Authority,
    AuthorityConfig,
    AuthorityMetadataCache,
    CoreasonAuthorityError,
    HttpxNetworkTransport,
)


async def main() -> None:
    """
    Demonstrates authority resolution against the public cloud.
    Includes:
    - Instance discovery moving the authority to its preferred network host
    - Two authorities sharing one metadata cache
    - OpenTelemetry instrumentation (auto-applied to the owned httpx client)
    """
    print(">>> Starting Authority Resolution Example")

    # Trust comes from instance discovery: no known authorities configured
    config = AuthorityConfig(metadata_ttl_seconds=3600)
    cache = AuthorityMetadataCache("00000000-0000-0000-0000-000000000000")

    async with HttpxNetworkTransport(timeout=5.0) as network:
        common = Authority("https://login.microsoftonline.com/common", network, cache, config)
        organizations = Authority("https://login.microsoftonline.com/organizations", network, cache, config)

        print(">>> Resolving authorities concurrently...")
        failed = False
        try:
            async with create_task_group() as tg:
                tg.start_soon(common.resolve)
                tg.start_soon(organizations.resolve)
        except* CoreasonAuthorityError as eg:
            # Without network access instance discovery cannot vouch for the host
            print(f">>> Resolution failed: {eg.exceptions[0]}")
            failed = True
        if failed:
            return

        for authority in (common, organizations):
            print(f"    - {authority.canonical_authority}")
            print(f"      token endpoint:       {authority.token_endpoint}")
            print(f"      device code endpoint: {authority.device_code_endpoint}")
            print(f"      preferred cache host: {authority.preferred_cache_host()}")


if __name__ == "__main__":
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(main())
