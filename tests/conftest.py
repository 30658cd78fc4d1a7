"""
Shared fixtures for the test suite.
"""

import pytest

from music_radio.config import Config
from music_radio.storage import LibraryStore


@pytest.fixture
def config():
    """Default configuration."""
    return Config()


@pytest.fixture
def store():
    """Opened in-memory library store."""
    with LibraryStore(":memory:") as opened:
        yield opened
