from pathlib import Path
from typing import AsyncIterator

from databases import Database
import pytest_asyncio

from domain.store import KeyValueStore


@pytest_asyncio.fixture
async def store(tmp_path: Path) -> AsyncIterator[KeyValueStore]:
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'recipe_book.db'}")
    await db.connect()
    kv = KeyValueStore(db)
    await kv.create_table()
    yield kv
    await db.disconnect()
