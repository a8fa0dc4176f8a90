import os
import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from movielib.db import MovieManager, backend_for_url, tables


@pytest.fixture()
async def manager(tmp_path) -> MovieManager:
    """ Movie manager with empty tables """
    url = DATABASE_URL or f'sqlite+aiosqlite:///{tmp_path / "movies.db"}'
    engine = create_async_engine(url)

    # Postgres: start from scratch
    if DATABASE_URL:
        async with engine.begin() as connection:
            await connection.run_sync(tables.metadata.drop_all)

    manager = MovieManager(engine, backend_for_url(url))
    await manager.init()
    try:
        yield manager
    finally:
        await manager.dispose()


# URL of the database to connect to. A new SQLite file for every test when not set.
DATABASE_URL = os.getenv('DATABASE_URL')
