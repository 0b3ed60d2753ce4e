"""Pytest configuration and test helpers."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


# Ensure the package is importable when running tests without an editable
# install. This mirrors the runtime layout where ``reelsync`` sits at the
# project root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO tests to run on asyncio without requiring trio."""

    return "asyncio"


@pytest.fixture
async def store(tmp_path, anyio_backend):
    """Content store backed by a throwaway SQLite database."""

    from reelsync.database import Database
    from reelsync.services.store import ContentStore

    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'content.db'}")
    await database.create_all()
    yield ContentStore(database.session_factory)
    await database.dispose()
