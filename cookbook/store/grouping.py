"""Fold flat recipe join rows into one recipe with its children.

Joining a recipe with its ingredients and its instructions as two independent
left joins yields one row per ingredient x instruction pair. The fold below
keeps each ingredient and each instruction exactly once.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from cookbook.models.recipe_schema import GroupedRecipe, Ingredient, Instruction, Recipe

RECIPE_COLUMNS = ("id", "title", "description", "servings", "preptime", "cooktime", "notes", "created_at")
INGREDIENT_COLUMNS = ("id", "name", "amount", "unit", "recipe")
INSTRUCTION_COLUMNS = ("id", "order", "recipe", "content")

# Column aliases used by the detail query; split_join_row reverses them.
JOIN_SELECT = ", ".join(
    [f'r."{c}" AS "recipe__{c}"' for c in RECIPE_COLUMNS]
    + [f'g."{c}" AS "ingredient__{c}"' for c in INGREDIENT_COLUMNS]
    + [f'i."{c}" AS "instruction__{c}"' for c in INSTRUCTION_COLUMNS]
)


def _section(row: Mapping[str, Any], prefix: str, columns) -> Optional[dict]:
    values = {c: row[f"{prefix}__{c}"] for c in columns}
    # a left join with no match fills every column, id included, with NULL
    if values["id"] is None:
        return None
    return values


def split_join_row(row: Mapping[str, Any]) -> dict:
    """Turn one aliased join row into {recipe, ingredient, instruction}."""
    return {
        "recipe": _section(row, "recipe", RECIPE_COLUMNS),
        "ingredient": _section(row, "ingredient", INGREDIENT_COLUMNS),
        "instruction": _section(row, "instruction", INSTRUCTION_COLUMNS),
    }


def group_recipe_rows(rows: Iterable[Mapping[str, Any]]) -> Optional[GroupedRecipe]:
    """Group split join rows into a GroupedRecipe.

    Returns None when there are no rows; callers report that as not found.
    Ingredients keep encounter order; instructions are sorted by step order.
    """
    recipe = None
    ingredients: dict[int, Ingredient] = {}
    instructions: dict[int, Instruction] = {}

    for row in rows:
        if recipe is None:
            recipe = Recipe.model_validate(row["recipe"])
        ingredient = row.get("ingredient")
        if ingredient is not None and ingredient["id"] not in ingredients:
            ingredients[ingredient["id"]] = Ingredient.model_validate(ingredient)
        instruction = row.get("instruction")
        if instruction is not None and instruction["id"] not in instructions:
            instructions[instruction["id"]] = Instruction.model_validate(instruction)

    if recipe is None:
        return None
    return GroupedRecipe(
        recipe=recipe,
        ingredients=list(ingredients.values()),
        instructions=sorted(instructions.values(), key=lambda step: step.order),
    )
