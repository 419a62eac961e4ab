"""Bring the stored children of one recipe in line with a submitted list.

Submitted items carrying an id update that row, items without one become new
rows, and stored rows whose id was not submitted are deleted. Ids are never
reassigned. An id that does not belong to the recipe is still sent as an
update and so touches no rows.

Call `reconcile` inside the caller's transaction.
"""

from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import Iterable

from databases import Database

from domain.db import in_clause
from domain.models import UpdateItemRequest


logger = logging.getLogger(__name__)


class ChildTable(Enum):
    ingredients = "ingredients"
    instructions = "instructions"


@dataclass
class ChildChanges:
    to_delete: list[int] = field(default_factory=list)
    to_update: list[UpdateItemRequest] = field(default_factory=list)
    to_insert: list[UpdateItemRequest] = field(default_factory=list)

    def statement_count(self) -> int:
        deletes = 1 if self.to_delete else 0
        return deletes + len(self.to_update) + len(self.to_insert)


def plan_changes(
    existing_ids: Iterable[int],
    submitted: Iterable[UpdateItemRequest],
) -> ChildChanges:
    changes = ChildChanges()
    for item in submitted:
        if item.id is None:
            changes.to_insert.append(item)
        else:
            changes.to_update.append(item)

    kept = {item.id for item in changes.to_update}
    changes.to_delete = sorted(set(existing_ids) - kept)
    return changes


def _select_ids(table: ChildTable) -> str:
    return f"SELECT id FROM {table.value} WHERE recipe_id = :recipe_id"


def _delete(table: ChildTable, placeholders: str) -> str:
    return f"DELETE FROM {table.value} WHERE id IN {placeholders}"


def _update(table: ChildTable) -> str:
    return (
        f"UPDATE {table.value} SET position = :position, description = :description "
        "WHERE id = :id"
    )


def insert_child(table: ChildTable) -> str:
    return (
        f"INSERT INTO {table.value} (recipe_id, position, description) "
        "VALUES (:recipe_id, :position, :description)"
    )


async def existing_child_ids(
    db: Database,
    table: ChildTable,
    recipe_id: int,
) -> list[int]:
    rows = await db.fetch_all(  # pyright: ignore[reportUnknownMemberType]
        _select_ids(table), values={"recipe_id": recipe_id}
    )
    return [row["id"] for row in rows]


async def apply_changes(
    db: Database,
    table: ChildTable,
    recipe_id: int,
    changes: ChildChanges,
) -> None:
    if changes.to_delete:
        placeholders, values = in_clause("id", changes.to_delete)
        await db.execute(  # pyright: ignore[reportUnknownMemberType]
            _delete(table, placeholders), values=values
        )

    for item in changes.to_update:
        await db.execute(  # pyright: ignore[reportUnknownMemberType]
            _update(table),
            values={
                "id": item.id,
                "position": item.position,
                "description": item.description,
            },
        )

    for item in changes.to_insert:
        await db.execute(  # pyright: ignore[reportUnknownMemberType]
            insert_child(table),
            values={
                "recipe_id": recipe_id,
                "position": item.position,
                "description": item.description,
            },
        )


async def reconcile(
    db: Database,
    table: ChildTable,
    recipe_id: int,
    submitted: list[UpdateItemRequest],
) -> ChildChanges:
    existing = await existing_child_ids(db, table, recipe_id)
    changes = plan_changes(existing, submitted)
    logger.debug(
        "Reconciling %s for recipe %s: %d deleted, %d updated, %d inserted.",
        table.value,
        recipe_id,
        len(changes.to_delete),
        len(changes.to_update),
        len(changes.to_insert),
    )
    await apply_changes(db, table, recipe_id, changes)
    return changes
