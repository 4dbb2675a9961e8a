"""Fixtures for MCP server tests."""

from __future__ import annotations

from collections.abc import Generator

import pytest

from tests._helpers import SAMPLE_SUPPLEMENT
from ticketflow.supplement import SupplementStore


@pytest.fixture
def mcp_store(store: SupplementStore) -> Generator[SupplementStore, None, None]:
    """Point the MCP module global at an empty (unconfigured) store."""
    import ticketflow.mcp_server as mcp_mod

    original = mcp_mod.store
    mcp_mod.store = store
    yield store
    mcp_mod.store = original


@pytest.fixture
def mcp_configured(mcp_store: SupplementStore) -> SupplementStore:
    """MCP store with SAMPLE_SUPPLEMENT saved."""
    mcp_store.save(SAMPLE_SUPPLEMENT)
    return mcp_store
