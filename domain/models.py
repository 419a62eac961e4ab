from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class Model(BaseModel):
    """camelCase on the wire, snake_case in Python. Unknown fields are dropped."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class RecipeFields(Model):
    name: str
    author: str | None = None
    description: str | None = None
    difficulty: str | None = None
    estimated_duration: str | None = None


class RecipeBase(RecipeFields):
    id: int


class ChildItem(Model):
    id: int
    recipe_id: int
    position: int
    description: str


class Ingredient(ChildItem):
    pass


class Instruction(ChildItem):
    pass


class Recipe(RecipeBase):
    ingredients: list[Ingredient]
    instructions: list[Instruction]

    @classmethod
    def assemble(
        cls,
        base: RecipeBase,
        *,
        ingredients: list[Ingredient],
        instructions: list[Instruction],
    ) -> "Recipe":
        return cls(
            **base.model_dump(),
            ingredients=ingredients,
            instructions=instructions,
        )


class CreateItemRequest(Model):
    position: int
    description: str


class UpdateItemRequest(Model):
    # With an id the row is updated, without one it is created.
    id: int | None = None
    position: int
    description: str


class CreateRecipeRequest(RecipeFields):
    ingredients: list[CreateItemRequest]
    instructions: list[CreateItemRequest]


class UpdateRecipeRequest(RecipeFields):
    ingredients: list[UpdateItemRequest]
    instructions: list[UpdateItemRequest]
