"""
Engine kernel test configuration.

Kernel tests use MemoryStorage and MemoryMedia and need no services.
PostgresStorage tests that need DATABASE_URL are skipped automatically when not set.
"""

import pytest

from engine.kernel.builder import MemoryStorage, PortfolioBuilder
from engine.kernel.media import MemoryMedia


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def media():
    return MemoryMedia()


@pytest.fixture
def builder(storage, media):
    return PortfolioBuilder(storage, media)
