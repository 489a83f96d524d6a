"""Application settings loaded from environment (and .env).

This module provides a small Settings holder backed by environment variables.
Keep this file simple and import `settings` from other modules.
"""
from __future__ import annotations

from dataclasses import dataclass
import os
import json
from pathlib import Path

# The extraction contract lives in a JSON file so the prompt and the output
# check read the same document.
_schema_path = Path(__file__).parent / "schemas" / "recipe_response_schema.json"
with open(_schema_path, "r", encoding="utf8") as _fh:
    RECIPE_RESPONSE_SCHEMA = json.load(_fh)


def _get(name: str, default: str | None = None) -> str | None:
    v = os.getenv(name)
    if v is None:
        return default
    return v


@dataclass
class Settings:
    # API keys
    GEMINI_API_KEY: str | None = _get("GEMINI_API_KEY")
    GEMINI_MODEL: str = _get("GEMINI_MODEL", "gemini-2.5-flash")

    # SQLite file holding recipes, ingredients, instructions and cooks
    DB_PATH: str = _get("COOKBOOK_DB_PATH", os.path.join("data", "cookbook.db"))

    # Seconds to wait for a recipe page when stealing
    FETCH_TIMEOUT: int = int(_get("FETCH_TIMEOUT", "20"))

    # Logging configuration
    # LOG_LEVEL can be DEBUG, INFO, WARNING, ERROR, or CRITICAL
    LOG_LEVEL: str = _get("LOG_LEVEL", "INFO")
    # Optional path to write logs to a file; if unset, logs go to stderr
    LOG_FILE: str | None = _get("LOG_FILE", None)


settings = Settings()


def validate_required() -> None:
    """Validate secrets needed by the steal flow and raise a helpful RuntimeError if missing.

    This function checks environment variables at runtime so callers can load a .env first.
    """
    missing = []
    if not os.getenv("GEMINI_API_KEY"):
        missing.append("GEMINI_API_KEY (Gemini / Google Generative AI key)")
    if missing:
        msg = (
            "Missing required environment variables: "
            + ", ".join(missing)
            + "\nPlease set them in your .env or environment and try again."
        )
        raise RuntimeError(msg)
