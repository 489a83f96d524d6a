"""Digest: store a whole recipe with its ingredients and instructions atomically."""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Iterable, Mapping

from cookbook.errors import TransactionError
from cookbook.models.recipe_schema import DigestPayload, IngredientFields, InstructionFields, Recipe
from cookbook.services.envelope import enveloped
from cookbook.services.recipes import insert_recipe
from cookbook.store.db import translate_integrity_error

logger = logging.getLogger(__name__)


def insert_ingredients(conn: sqlite3.Connection, recipe_id: int, items: Iterable[IngredientFields]) -> None:
    conn.executemany(
        "INSERT INTO ingredient (name, amount, unit, recipe) VALUES (?, ?, ?, ?)",
        [(i.name, i.amount, i.unit, recipe_id) for i in items],
    )


def insert_instructions(conn: sqlite3.Connection, recipe_id: int, items: Iterable[InstructionFields]) -> None:
    conn.executemany(
        'INSERT INTO instruction ("order", content, recipe) VALUES (?, ?, ?)',
        [(i.order, i.content, recipe_id) for i in items],
    )


def store_payload(conn: sqlite3.Connection, data: DigestPayload) -> Recipe:
    """Insert recipe, then its children, in one transaction.

    The recipe goes first because the children need its id. Any failure rolls
    the whole transaction back, so no recipe is left without its children.
    """
    try:
        with conn:
            recipe = insert_recipe(conn, data)
            insert_ingredients(conn, recipe.id, data.ingredients)
            insert_instructions(conn, recipe.id, data.instructions)
    except sqlite3.IntegrityError as e:
        logger.exception("Digest transaction failed for %r, rolled back", data.title)
        raise translate_integrity_error(e) from e
    except sqlite3.Error as e:
        logger.exception("Digest transaction failed for %r, rolled back", data.title)
        raise TransactionError(f"Failed to digest recipe: {e}") from e

    logger.info(
        "Digested recipe id=%s title=%s ingredients=%d instructions=%d",
        recipe.id,
        recipe.title,
        len(data.ingredients),
        len(data.instructions),
    )
    return recipe


@enveloped("Failed to digest recipe")
def digest_recipe(conn: sqlite3.Connection, payload: Mapping[str, Any] | DigestPayload) -> Recipe:
    """Validate a full recipe payload and persist it as one unit.

    Accepts the parsed JSON a user pasted or the payload returned by the
    extractor; both go through the same validation.
    """
    if isinstance(payload, DigestPayload):
        payload = payload.model_dump()
    data = DigestPayload.model_validate(payload)
    return store_payload(conn, data)
