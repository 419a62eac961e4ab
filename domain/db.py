"""Storage access. A thin layer over `databases` for the SQLite store."""

import contextlib
from typing import AsyncIterator

from databases import Database
from databases.core import Connection


CREATE_RECIPES_TABLE = """
CREATE TABLE IF NOT EXISTS recipes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    author TEXT,
    description TEXT,
    difficulty TEXT,
    estimated_duration TEXT
)
"""


CREATE_INGREDIENTS_TABLE = """
CREATE TABLE IF NOT EXISTS ingredients (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    recipe_id INTEGER NOT NULL REFERENCES recipes (id) ON DELETE CASCADE,
    position INTEGER NOT NULL,
    description TEXT NOT NULL
)
"""


CREATE_INSTRUCTIONS_TABLE = """
CREATE TABLE IF NOT EXISTS instructions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    recipe_id INTEGER NOT NULL REFERENCES recipes (id) ON DELETE CASCADE,
    position INTEGER NOT NULL,
    description TEXT NOT NULL
)
"""


CREATE_INGREDIENTS_INDEX = (
    "CREATE INDEX IF NOT EXISTS ingredients_recipe_id ON ingredients (recipe_id)"
)


CREATE_INSTRUCTIONS_INDEX = (
    "CREATE INDEX IF NOT EXISTS instructions_recipe_id ON instructions (recipe_id)"
)


SCHEMA = (
    CREATE_RECIPES_TABLE,
    CREATE_INGREDIENTS_TABLE,
    CREATE_INSTRUCTIONS_TABLE,
    CREATE_INGREDIENTS_INDEX,
    CREATE_INSTRUCTIONS_INDEX,
)


# No-op inside a transaction, so it has to run before BEGIN.
ENABLE_FOREIGN_KEYS = "PRAGMA foreign_keys = ON"


async def create_db(db: Database) -> None:
    async with db.connection() as connection:
        for statement in SCHEMA:
            await connection.execute(  # pyright: ignore[reportUnknownMemberType]
                query=statement
            )


@contextlib.asynccontextmanager
async def foreign_keys(db: Database) -> AsyncIterator[Connection]:
    """Hold the task's connection with foreign keys enforced.

    `databases` opens a fresh sqlite connection per unit of work, and the
    pragma is per connection. Queries made through `db` inside this block reuse
    the held connection, including any `db.transaction()`.
    """
    async with db.connection() as connection:
        await connection.execute(  # pyright: ignore[reportUnknownMemberType]
            query=ENABLE_FOREIGN_KEYS
        )
        yield connection


def in_clause(name: str, values: list[int]) -> tuple[str, dict[str, int]]:
    """Placeholders and bound values for `IN (...)` over `values`.

    >>> in_clause("id", [4, 7])
    ('(:id_0, :id_1)', {'id_0': 4, 'id_1': 7})
    """
    if not values:
        raise ValueError("Cannot build an IN clause over no values.")
    params = {f"{name}_{i}": value for i, value in enumerate(values)}
    placeholders = ", ".join(f":{key}" for key in params)
    return f"({placeholders})", params
