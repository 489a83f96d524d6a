"""Cook sessions: one run through a recipe with a checklist over its items."""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Mapping, Optional

from cookbook.errors import NotFoundError
from cookbook.models.recipe_schema import (
    CheckedUpdate,
    Cook,
    CookCreate,
    CookIngredient,
    CookInstruction,
    CookSession,
    NotesUpdate,
)
from cookbook.services.envelope import enveloped
from cookbook.services.recipes import load_recipe
from cookbook.store.db import translate_integrity_error

logger = logging.getLogger(__name__)


def _load_cook(conn: sqlite3.Connection, cook_id: int) -> Cook:
    row = conn.execute("SELECT * FROM cook WHERE id = ?", (cook_id,)).fetchone()
    if row is None:
        raise NotFoundError("No cook with that ID found")
    return Cook.model_validate(dict(row))


def load_session(conn: sqlite3.Connection, cook_id: int) -> CookSession:
    cook = _load_cook(conn, cook_id)
    # items added to the recipe after the cook started show up unchecked
    ingredients = conn.execute(
        """
        SELECT g.*, COALESCE(ci.checked, 0) AS checked
        FROM ingredient g
        LEFT JOIN cook_ingredient ci ON ci.ingredient = g.id AND ci.cook = ?
        WHERE g.recipe = ?
        ORDER BY g.id
        """,
        (cook.id, cook.recipe),
    ).fetchall()
    instructions = conn.execute(
        """
        SELECT i.*, COALESCE(ci.checked, 0) AS checked
        FROM instruction i
        LEFT JOIN cook_instruction ci ON ci.instruction = i.id AND ci.cook = ?
        WHERE i.recipe = ?
        ORDER BY i."order"
        """,
        (cook.id, cook.recipe),
    ).fetchall()
    return CookSession(
        cook=cook,
        ingredients=[CookIngredient.model_validate(dict(r)) for r in ingredients],
        instructions=[CookInstruction.model_validate(dict(r)) for r in instructions],
    )


@enveloped("Failed to start cook")
def start_cook(conn: sqlite3.Connection, payload: Mapping[str, Any]) -> CookSession:
    data = CookCreate.model_validate(payload)
    grouped = load_recipe(conn, data.recipe)
    try:
        with conn:
            cur = conn.execute(
                "INSERT INTO cook (recipe, created_by, notes) VALUES (?, ?, ?)",
                (data.recipe, data.created_by, data.notes),
            )
            cook_id = cur.lastrowid
            conn.executemany(
                "INSERT INTO cook_ingredient (cook, ingredient) VALUES (?, ?)",
                [(cook_id, g.id) for g in grouped.ingredients],
            )
            conn.executemany(
                "INSERT INTO cook_instruction (cook, instruction) VALUES (?, ?)",
                [(cook_id, i.id) for i in grouped.instructions],
            )
    except sqlite3.IntegrityError as e:
        raise translate_integrity_error(e) from e
    logger.info("Started cook id=%s for recipe id=%s", cook_id, data.recipe)
    return load_session(conn, cook_id)


@enveloped("Failed to retrieve cook")
def get_cook(conn: sqlite3.Connection, cook_id: int) -> CookSession:
    return load_session(conn, cook_id)


@enveloped("Failed to list cooks")
def list_cooks(conn: sqlite3.Connection, recipe_id: int) -> list:
    rows = conn.execute(
        "SELECT * FROM cook WHERE recipe = ? ORDER BY created_at DESC, id DESC",
        (recipe_id,),
    ).fetchall()
    return [Cook.model_validate(dict(r)) for r in rows]


def _set_checked(conn: sqlite3.Connection, cook_id: int, kind: str, item_id: int, checked: Any) -> CookSession:
    data = CheckedUpdate.model_validate({"checked": checked})
    cook = _load_cook(conn, cook_id)
    owner = conn.execute(f"SELECT recipe FROM {kind} WHERE id = ?", (item_id,)).fetchone()
    if owner is None or owner["recipe"] != cook.recipe:
        raise NotFoundError(f"No {kind} with that ID in this cook")
    with conn:
        conn.execute(
            f"""
            INSERT INTO cook_{kind} (cook, {kind}, checked) VALUES (?, ?, ?)
            ON CONFLICT (cook, {kind}) DO UPDATE SET checked = excluded.checked
            """,
            (cook_id, item_id, int(data.checked)),
        )
    return load_session(conn, cook_id)


@enveloped("Failed to update ingredient checklist")
def set_ingredient_checked(conn: sqlite3.Connection, cook_id: int, ingredient_id: int, checked: bool) -> CookSession:
    return _set_checked(conn, cook_id, "ingredient", ingredient_id, checked)


@enveloped("Failed to update instruction checklist")
def set_instruction_checked(conn: sqlite3.Connection, cook_id: int, instruction_id: int, checked: bool) -> CookSession:
    return _set_checked(conn, cook_id, "instruction", instruction_id, checked)


@enveloped("Failed to update cook notes")
def update_cook_notes(conn: sqlite3.Connection, cook_id: int, notes: Optional[str]) -> Cook:
    data = NotesUpdate.model_validate({"notes": notes})
    with conn:
        cur = conn.execute("UPDATE cook SET notes = ? WHERE id = ?", (data.notes, cook_id))
    if cur.rowcount == 0:
        raise NotFoundError("No cook with that ID found")
    return _load_cook(conn, cook_id)


@enveloped("Failed to delete cook")
def delete_cook(conn: sqlite3.Connection, cook_id: int) -> dict:
    with conn:
        cur = conn.execute("DELETE FROM cook WHERE id = ?", (cook_id,))
    return {"id": cook_id, "deleted": cur.rowcount > 0}
