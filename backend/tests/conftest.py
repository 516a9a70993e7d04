"""
Shared Test Fixtures and Configuration

This module provides pytest fixtures used across unit and integration tests.

The application reads its settings once at import time, so the test
environment (in-memory SQLite, scheduler off) is configured here before any
app module is imported.
"""

import os
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from dotenv import load_dotenv

# Add the backend directory to the path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load .env file from project root so local overrides are visible
_project_root = Path(__file__).parent.parent.parent
_env_file = _project_root / ".env"
if _env_file.exists():
    load_dotenv(_env_file)

# Forcefully set test environment variables (override .env values)
os.environ["DATABASE_URL_OVERRIDE"] = "sqlite+aiosqlite://"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["DEBUG"] = "false"


from tests.factories import FixedClock  # noqa: E402


# ============================================================================
# Time
# ============================================================================


@pytest.fixture
def clock() -> FixedClock:
    """Clock pinned to FIXED_NOW; tests may move it by assigning clock.now."""
    return FixedClock()


# ============================================================================
# Mock Fixtures
# ============================================================================


@pytest.fixture
def mock_db_session() -> MagicMock:
    """
    Create a mock database session for unit testing.
    """
    mock = MagicMock()
    mock.execute = AsyncMock()
    mock.commit = AsyncMock()
    mock.rollback = AsyncMock()
    mock.flush = AsyncMock()
    mock.close = AsyncMock()
    return mock
