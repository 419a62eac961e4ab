from pathlib import Path
from typing import AsyncIterator, Iterator

from databases import Database
import pytest
import pytest_asyncio
from starlette.testclient import TestClient

from app.app import create_app
from app.config import Config
from domain.db import create_db
from domain.repository import RecipesRepository


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    # One file per test. Every sqlite connection to :memory: is a new database.
    return f"sqlite+aiosqlite:///{tmp_path / 'recipes.db'}"


@pytest_asyncio.fixture
async def db(db_url: str) -> AsyncIterator[Database]:
    database = Database(db_url)
    await database.connect()
    await create_db(database)
    yield database
    await database.disconnect()


@pytest.fixture
def repo(db: Database) -> RecipesRepository:
    return RecipesRepository(db)


@pytest.fixture
def config(db_url: str, tmp_path: Path) -> Config:
    return Config(db_url=db_url, static_dir=tmp_path / "static")


@pytest.fixture
def client(config: Config) -> Iterator[TestClient]:
    with TestClient(create_app(config)) as client:
        yield client
