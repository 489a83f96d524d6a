"""Create, read, update and delete recipes and their ingredients and instructions.

Every public function takes an open connection, validates its input once with
the models in `cookbook.models.recipe_schema` and returns a Success/Failure
envelope (see `enveloped`).
"""

from __future__ import annotations

import logging
import math
import sqlite3
from typing import Any, Mapping, Optional

from cookbook.errors import NotFoundError, ValidationError
from cookbook.models.recipe_schema import (
    GroupedRecipe,
    Ingredient,
    IngredientCreate,
    IngredientUpdate,
    Instruction,
    InstructionCreate,
    InstructionUpdate,
    NotesUpdate,
    Recipe,
    RecipeCreate,
    RecipePage,
)
from cookbook.services.envelope import enveloped
from cookbook.store.db import translate_integrity_error
from cookbook.store.grouping import JOIN_SELECT, group_recipe_rows, split_join_row

logger = logging.getLogger(__name__)

PAGE_SIZE = 20

RECIPE_FIELDS = ("title", "description", "servings", "preptime", "cooktime", "notes")


def _insert(conn: sqlite3.Connection, table: str, values: Mapping[str, Any]) -> sqlite3.Row:
    columns = ", ".join(f'"{c}"' for c in values)
    marks = ", ".join("?" for _ in values)
    cur = conn.execute(f'INSERT INTO "{table}" ({columns}) VALUES ({marks})', tuple(values.values()))
    return _fetch(conn, table, cur.lastrowid)


def _fetch(conn: sqlite3.Connection, table: str, row_id: int) -> Optional[sqlite3.Row]:
    return conn.execute(f'SELECT * FROM "{table}" WHERE id = ?', (row_id,)).fetchone()


def _write(conn: sqlite3.Connection, sql: str, params=()) -> sqlite3.Cursor:
    """Run one statement in its own transaction, mapping constraint failures."""
    try:
        with conn:
            return conn.execute(sql, params)
    except sqlite3.IntegrityError as e:
        raise translate_integrity_error(e) from e


def insert_recipe(conn: sqlite3.Connection, data: RecipeCreate) -> Recipe:
    """Insert a recipe row without committing. Shared with the digest service."""
    row = _insert(conn, "recipe", data.model_dump(include=set(RECIPE_FIELDS)))
    return Recipe.model_validate(dict(row))


def load_recipe(conn: sqlite3.Connection, recipe_id: int) -> GroupedRecipe:
    rows = conn.execute(
        f"""
        SELECT {JOIN_SELECT}
        FROM recipe r
        LEFT JOIN ingredient g ON g.recipe = r.id
        LEFT JOIN instruction i ON i.recipe = r.id
        WHERE r.id = ?
        ORDER BY g.id, i.id
        """,
        (recipe_id,),
    ).fetchall()
    grouped = group_recipe_rows(split_join_row(r) for r in rows)
    if grouped is None:
        raise NotFoundError("No recipe with that ID found")
    return grouped


def normalize_page(page: Any) -> int:
    try:
        page = int(page)
    except (TypeError, ValueError):
        return 1
    return page if page >= 1 else 1


# ---- recipes ---------------------------------------------------------------


@enveloped("Failed to create recipe")
def create_recipe(conn: sqlite3.Connection, payload: Mapping[str, Any]) -> Recipe:
    data = RecipeCreate.model_validate(payload)
    try:
        with conn:
            recipe = insert_recipe(conn, data)
    except sqlite3.IntegrityError as e:
        raise translate_integrity_error(e) from e
    logger.info("Created recipe id=%s title=%s", recipe.id, recipe.title)
    return recipe


@enveloped("Failed to retrieve recipe")
def get_recipe(conn: sqlite3.Connection, recipe_id: int) -> GroupedRecipe:
    return load_recipe(conn, recipe_id)


@enveloped("Failed to list recipes")
def list_recipes(conn: sqlite3.Connection, page: Any = 1) -> RecipePage:
    page = normalize_page(page)
    total = conn.execute("SELECT COUNT(*) FROM recipe").fetchone()[0]
    rows = conn.execute(
        "SELECT * FROM recipe ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?",
        (PAGE_SIZE, (page - 1) * PAGE_SIZE),
    ).fetchall()
    return RecipePage(
        items=[Recipe.model_validate(dict(r)) for r in rows],
        total=total,
        total_pages=math.ceil(total / PAGE_SIZE),
        page=page,
        page_size=PAGE_SIZE,
    )


@enveloped("Failed to update notes")
def update_recipe_notes(conn: sqlite3.Connection, recipe_id: int, notes: Optional[str]) -> Recipe:
    data = NotesUpdate.model_validate({"notes": notes})
    cur = _write(conn, "UPDATE recipe SET notes = ? WHERE id = ?", (data.notes, recipe_id))
    if cur.rowcount == 0:
        raise NotFoundError("No recipe with that ID found")
    return Recipe.model_validate(dict(_fetch(conn, "recipe", recipe_id)))


@enveloped("Failed to delete recipe")
def delete_recipe(conn: sqlite3.Connection, recipe_id: int) -> dict:
    cur = _write(conn, "DELETE FROM recipe WHERE id = ?", (recipe_id,))
    if cur.rowcount:
        logger.info("Deleted recipe id=%s", recipe_id)
    return {"id": recipe_id, "deleted": cur.rowcount > 0}


# ---- ingredients -----------------------------------------------------------


@enveloped("Failed to add ingredient")
def add_ingredient(conn: sqlite3.Connection, payload: Mapping[str, Any]) -> Ingredient:
    data = IngredientCreate.model_validate(payload)
    try:
        with conn:
            row = _insert(conn, "ingredient", data.model_dump())
    except sqlite3.IntegrityError as e:
        raise translate_integrity_error(e) from e
    return Ingredient.model_validate(dict(row))


def _partial_update(conn: sqlite3.Connection, table: str, row_id: int, fields: dict) -> sqlite3.Row:
    if not fields:
        raise ValidationError("No fields to update")
    assignments = ", ".join(f'"{c}" = ?' for c in fields)
    cur = _write(conn, f'UPDATE "{table}" SET {assignments} WHERE id = ?', (*fields.values(), row_id))
    if cur.rowcount == 0:
        raise NotFoundError(f"No {table} with that ID found")
    return _fetch(conn, table, row_id)


@enveloped("Failed to edit ingredient")
def edit_ingredient(conn: sqlite3.Connection, ingredient_id: int, fields: Mapping[str, Any]) -> Ingredient:
    data = IngredientUpdate.model_validate(fields)
    row = _partial_update(conn, "ingredient", ingredient_id, data.model_dump(exclude_none=True))
    return Ingredient.model_validate(dict(row))


@enveloped("Failed to delete ingredient")
def delete_ingredient(conn: sqlite3.Connection, ingredient_id: int) -> dict:
    cur = _write(conn, "DELETE FROM ingredient WHERE id = ?", (ingredient_id,))
    return {"id": ingredient_id, "deleted": cur.rowcount > 0}


# ---- instructions ----------------------------------------------------------


@enveloped("Failed to add instruction")
def add_instruction(conn: sqlite3.Connection, payload: Mapping[str, Any]) -> Instruction:
    data = InstructionCreate.model_validate(payload)
    try:
        with conn:
            row = _insert(conn, "instruction", data.model_dump())
    except sqlite3.IntegrityError as e:
        raise translate_integrity_error(e) from e
    return Instruction.model_validate(dict(row))


@enveloped("Failed to edit instruction")
def edit_instruction(conn: sqlite3.Connection, instruction_id: int, fields: Mapping[str, Any]) -> Instruction:
    data = InstructionUpdate.model_validate(fields)
    row = _partial_update(conn, "instruction", instruction_id, data.model_dump(exclude_none=True))
    return Instruction.model_validate(dict(row))


@enveloped("Failed to delete instruction")
def delete_instruction(conn: sqlite3.Connection, instruction_id: int) -> dict:
    cur = _write(conn, "DELETE FROM instruction WHERE id = ?", (instruction_id,))
    return {"id": instruction_id, "deleted": cur.rowcount > 0}
