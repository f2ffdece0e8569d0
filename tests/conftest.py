from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

import storage.db_config as db_config


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    return str(tmp_path / "data" / "routine.db")


@pytest.fixture
def run_with_db(db_path: str):
    """Run an async scenario against a fresh SQLite database in one event loop."""

    def runner(scenario):
        async def wrapped():
            await db_config.init_db(db_path)
            try:
                return await scenario()
            finally:
                await db_config.close_db()

        return asyncio.run(wrapped())

    return runner
