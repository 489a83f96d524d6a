"""SQLite schema and connection helpers."""

from __future__ import annotations

import logging
import os
import sqlite3
from typing import Optional

from cookbook.errors import CookbookError, ConflictError, NotFoundError, ValidationError
from cookbook.settings import settings

logger = logging.getLogger(__name__)

_NOW = "(CAST(strftime('%s', 'now') AS INTEGER))"

SCHEMA = [
    f"""
    CREATE TABLE IF NOT EXISTS recipe (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        title TEXT NOT NULL UNIQUE,
        description TEXT,
        servings INTEGER NOT NULL DEFAULT 1,
        preptime INTEGER NOT NULL,
        cooktime INTEGER NOT NULL,
        notes TEXT,
        created_at INTEGER NOT NULL DEFAULT {_NOW}
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS ingredient (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        amount REAL NOT NULL,
        unit TEXT NOT NULL,
        recipe INTEGER NOT NULL REFERENCES recipe(id) ON DELETE CASCADE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS instruction (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        "order" INTEGER NOT NULL,
        recipe INTEGER NOT NULL REFERENCES recipe(id) ON DELETE CASCADE,
        content TEXT NOT NULL,
        UNIQUE ("order", recipe)
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS cook (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        created_at INTEGER NOT NULL DEFAULT {_NOW},
        created_by TEXT,
        recipe INTEGER NOT NULL REFERENCES recipe(id) ON DELETE CASCADE,
        notes TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS cook_instruction (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        cook INTEGER NOT NULL REFERENCES cook(id) ON DELETE CASCADE,
        instruction INTEGER NOT NULL REFERENCES instruction(id) ON DELETE CASCADE,
        checked INTEGER NOT NULL DEFAULT 0,
        UNIQUE (cook, instruction)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS cook_ingredient (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        cook INTEGER NOT NULL REFERENCES cook(id) ON DELETE CASCADE,
        ingredient INTEGER NOT NULL REFERENCES ingredient(id) ON DELETE CASCADE,
        checked INTEGER NOT NULL DEFAULT 0,
        UNIQUE (cook, ingredient)
    )
    """,
    "CREATE INDEX IF NOT EXISTS ingredient_recipe_idx ON ingredient (recipe)",
    "CREATE INDEX IF NOT EXISTS instruction_recipe_idx ON instruction (recipe)",
    "CREATE INDEX IF NOT EXISTS cook_recipe_idx ON cook (recipe)",
]


def ensure_db(path: Optional[str] = None) -> None:
    """Create the database file and all tables if they don't exist."""
    path = path or settings.DB_PATH
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    conn = connect(path)
    try:
        with conn:
            for statement in SCHEMA:
                conn.execute(statement)
    finally:
        conn.close()
    logger.debug("Schema ensured at %s", path)


def connect(path: Optional[str] = None, check_same_thread: bool = True) -> sqlite3.Connection:
    """Open a connection with dict-like rows and foreign keys enforced.

    SQLite leaves foreign keys off per connection, so cascades only work on
    connections opened here.
    """
    conn = sqlite3.connect(path or settings.DB_PATH, check_same_thread=check_same_thread)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def translate_integrity_error(exc: sqlite3.IntegrityError) -> CookbookError:
    """Map a constraint failure onto the error taxonomy, keeping the store's text."""
    text = str(exc)
    if "UNIQUE constraint failed" in text:
        return ConflictError(text)
    if "FOREIGN KEY constraint failed" in text:
        return NotFoundError(text)
    return ValidationError(text)
