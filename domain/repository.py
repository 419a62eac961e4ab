import logging

from databases import Database
from databases.interfaces import Record

from domain.db import foreign_keys, in_clause
from domain.models import (
    CreateItemRequest,
    CreateRecipeRequest,
    Ingredient,
    Instruction,
    Recipe,
    RecipeBase,
    UpdateRecipeRequest,
)
from domain.reconcile import ChildTable, insert_child, reconcile


logger = logging.getLogger(__name__)


RECIPE_COLUMNS = "id, name, author, description, difficulty, estimated_duration"


GET_RECIPE = f"SELECT {RECIPE_COLUMNS} FROM recipes WHERE id = :id"


RECIPE_EXISTS = "SELECT id FROM recipes WHERE id = :id"


GET_INGREDIENTS = """
SELECT id, recipe_id, position, description FROM ingredients
WHERE recipe_id = :recipe_id ORDER BY position ASC, id ASC
"""


GET_INSTRUCTIONS = """
SELECT id, recipe_id, position, description FROM instructions
WHERE recipe_id = :recipe_id ORDER BY position ASC, id ASC
"""


SEARCH_RECIPES = (
    f"SELECT {RECIPE_COLUMNS} FROM recipes "
    "WHERE name LIKE :query OR description LIKE :query"
)


SEARCH_INGREDIENTS = (
    "SELECT DISTINCT recipe_id FROM ingredients WHERE description LIKE :query"
)


SEARCH_INSTRUCTIONS = (
    "SELECT DISTINCT recipe_id FROM instructions WHERE description LIKE :query"
)


CREATE_RECIPE = """
INSERT INTO recipes (name, author, description, difficulty, estimated_duration)
VALUES (:name, :author, :description, :difficulty, :estimated_duration)
"""


UPDATE_RECIPE = """
UPDATE recipes
SET name = :name, description = :description, author = :author,
    difficulty = :difficulty, estimated_duration = :estimated_duration
WHERE id = :id
"""


DELETE_RECIPE = "DELETE FROM recipes WHERE id = :id"


class RecipeNotFound(Exception):
    def __init__(self, recipe_id: int) -> None:
        super().__init__(f"recipe with id {recipe_id} not found")
        self.recipe_id = recipe_id


def _recipe_base(r: Record) -> RecipeBase:
    return RecipeBase(
        id=r["id"],
        name=r["name"],
        author=r["author"],
        description=r["description"],
        difficulty=r["difficulty"],
        estimated_duration=r["estimated_duration"],
    )


def _child_values(recipe_id: int, items: list[CreateItemRequest]) -> list[dict]:
    return [
        {
            "recipe_id": recipe_id,
            "position": item.position,
            "description": item.description,
        }
        for item in items
    ]


def _recipe_values(request: CreateRecipeRequest | UpdateRecipeRequest) -> dict:
    return {
        "name": request.name,
        "author": request.author,
        "description": request.description,
        "difficulty": request.difficulty,
        "estimated_duration": request.estimated_duration,
    }


class RecipesRepository:
    """Recipes with their ingredients and instructions, read and written whole."""

    def __init__(self, db: Database) -> None:
        self.db = db

    async def get(self, id: int) -> Recipe:
        result = await self.db.fetch_one(  # pyright: ignore[reportUnknownMemberType]
            GET_RECIPE, values={"id": id}
        )
        if result is None:
            raise RecipeNotFound(id)

        ingredients = await self.db.fetch_all(  # pyright: ignore[reportUnknownMemberType]
            GET_INGREDIENTS, values={"recipe_id": id}
        )
        instructions = await self.db.fetch_all(  # pyright: ignore[reportUnknownMemberType]
            GET_INSTRUCTIONS, values={"recipe_id": id}
        )

        return Recipe.assemble(
            _recipe_base(result),
            ingredients=[
                Ingredient(
                    id=r["id"],
                    recipe_id=r["recipe_id"],
                    position=r["position"],
                    description=r["description"],
                )
                for r in ingredients
            ],
            instructions=[
                Instruction(
                    id=r["id"],
                    recipe_id=r["recipe_id"],
                    position=r["position"],
                    description=r["description"],
                )
                for r in instructions
            ],
        )

    async def search(
        self,
        query: str,
        *,
        include_ingredients: bool = False,
        include_instructions: bool = False,
    ) -> list[RecipeBase]:
        like = f"%{query}%"
        other_ids: set[int] = set()

        if include_ingredients:
            rows = await self.db.fetch_all(  # pyright: ignore[reportUnknownMemberType]
                SEARCH_INGREDIENTS, values={"query": like}
            )
            other_ids.update(r["recipe_id"] for r in rows)

        if include_instructions:
            rows = await self.db.fetch_all(  # pyright: ignore[reportUnknownMemberType]
                SEARCH_INSTRUCTIONS, values={"query": like}
            )
            other_ids.update(r["recipe_id"] for r in rows)

        statement = SEARCH_RECIPES
        values: dict = {"query": like}
        if other_ids:
            placeholders, id_values = in_clause("id", sorted(other_ids))
            statement += f" OR id IN {placeholders}"
            values.update(id_values)
        statement += " ORDER BY id ASC"

        result = await self.db.fetch_all(  # pyright: ignore[reportUnknownMemberType]
            statement, values=values
        )
        logger.debug("Search %r matched %d recipe(s).", query, len(result))
        return [_recipe_base(r) for r in result]

    async def create(self, request: CreateRecipeRequest) -> Recipe:
        async with foreign_keys(self.db), self.db.transaction():
            id = await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
                CREATE_RECIPE, values=_recipe_values(request)
            )
            if request.ingredients:
                await self.db.execute_many(  # pyright: ignore[reportUnknownMemberType]
                    insert_child(ChildTable.ingredients),
                    values=_child_values(id, request.ingredients),
                )
            if request.instructions:
                await self.db.execute_many(  # pyright: ignore[reportUnknownMemberType]
                    insert_child(ChildTable.instructions),
                    values=_child_values(id, request.instructions),
                )

        logger.info("Created recipe %s (%s).", id, request.name)
        return await self.get(id)

    async def update(self, id: int, request: UpdateRecipeRequest) -> Recipe:
        # No existence check: a missing recipe falls through to `get`.
        async with foreign_keys(self.db), self.db.transaction():
            await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
                UPDATE_RECIPE, values={"id": id, **_recipe_values(request)}
            )
            await reconcile(
                self.db, ChildTable.ingredients, id, request.ingredients
            )
            await reconcile(
                self.db, ChildTable.instructions, id, request.instructions
            )

        logger.info("Updated recipe %s.", id)
        return await self.get(id)

    async def delete(self, id: int) -> None:
        async with foreign_keys(self.db):
            found = await self.db.fetch_one(  # pyright: ignore[reportUnknownMemberType]
                RECIPE_EXISTS, values={"id": id}
            )
            if found is None:
                raise RecipeNotFound(id)

            await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
                DELETE_RECIPE, values={"id": id}
            )
        logger.info("Deleted recipe %s.", id)
