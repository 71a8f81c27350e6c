# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_authority

import coreason_authority


def test_version() -> None:
    assert coreason_authority.__version__ == "0.1.0"


def test_exports_resolve() -> None:
    for name in coreason_authority.__all__:
        assert getattr(coreason_authority, name) is not None


def test_exported_exceptions_share_base() -> None:
    assert issubclass(coreason_authority.UntrustedAuthorityError, coreason_authority.CoreasonAuthorityError)
    assert issubclass(coreason_authority.EndpointResolutionError, coreason_authority.CoreasonAuthorityError)
