"""
Shared fixtures for Offer Notify tests.

Provides common test fixtures for use across all test modules.
"""

from collections.abc import AsyncGenerator
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from offer_notify.config import NtfyConfig
from offer_notify.models import Entry
from offer_notify.storage import SeenStore


# Path to test fixtures directory
FIXTURES_DIR = Path(__file__).parent / "fixtures"

TOPIC_URL = "https://ntfy.example.com/offers"


@pytest.fixture
def fixtures_dir() -> Path:
    """Return path to fixtures directory."""
    return FIXTURES_DIR


@pytest.fixture
def sample_rss_content(fixtures_dir: Path) -> str:
    """Return contents of sample RSS feed."""
    return (fixtures_dir / "sample_rss.xml").read_text()


@pytest.fixture
def sample_config_path(fixtures_dir: Path) -> Path:
    """Return path to sample config file."""
    return fixtures_dir / "sample_config.yaml"


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove NTFY_* variables that would override configuration."""
    for name in ("NTFY_TOPIC_URL", "NTFY_USERNAME", "NTFY_PASSWORD"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def deal_entries() -> list[Entry]:
    """Two entries as returned by a typical fetch."""
    return [
        Entry(identifier="a", title="Deal A", link="https://example.com/a"),
        Entry(identifier="b", title="Deal B", link="https://example.com/b"),
    ]


@pytest.fixture
def ntfy_config() -> NtfyConfig:
    """Create an ntfy configuration with credentials."""
    return NtfyConfig(topic_url=TOPIC_URL, username="alice", password="s3cret")


@pytest_asyncio.fixture
async def in_memory_store() -> AsyncGenerator[SeenStore, None]:
    """
    Create an in-memory seen-store for testing.

    Yields
    ------
    SeenStore
        An initialized in-memory store instance.
    """
    store = SeenStore(":memory:")
    await store.initialize()
    yield store
    await store.close()


@pytest.fixture
def mock_source(deal_entries: list[Entry]) -> MagicMock:
    """Create a feed source returning the two deal entries."""
    source = MagicMock()
    source.fetch = AsyncMock(return_value=deal_entries)
    source.close = AsyncMock()
    return source


@pytest.fixture
def mock_notifier() -> MagicMock:
    """Create a notifier whose sends always succeed."""
    notifier = MagicMock()
    notifier.send = AsyncMock(return_value=None)
    notifier.close = AsyncMock()
    return notifier
