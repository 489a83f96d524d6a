"""Steal workflow: URL -> page -> text -> model -> validated payload (-> digest)."""

from __future__ import annotations

import logging
import sqlite3
from typing import Optional

import requests

from cookbook.errors import UpstreamError, ValidationError
from cookbook.ingest.extract_text import extract_main_text
from cookbook.ingest.fetch import fetch_url
from cookbook.ingest.parse_llm_gemini import parse_recipe_text
from cookbook.models.recipe_schema import DigestPayload
from cookbook.models.result import Failure, Result
from cookbook.services.digest import digest_recipe
from cookbook.services.envelope import enveloped

logger = logging.getLogger(__name__)


def url_to_recipe(url: str, client=None) -> DigestPayload:
    """Fetch a URL, extract text and have the model turn it into a payload.

    Raises UpstreamError for any failure along the way; nothing is stored.
    """
    stage = "start"
    logger.info("Steal start | url=%s", url)
    try:
        stage = "fetch"
        html, final = fetch_url(url)

        stage = "extract"
        text = extract_main_text(html, final)
        if not text:
            logger.warning("No main text extracted from %s; relying on JSON-LD", final)

        stage = "parse"
        recipe = parse_recipe_text(text, final, html=html, client=client)
    except UpstreamError:
        logger.warning("Steal failed | url=%s stage=%s", url, stage)
        raise
    except requests.RequestException as e:
        logger.warning("Steal failed | url=%s stage=%s error=%s", url, stage, e)
        raise UpstreamError(f"Could not fetch {url}: {e}") from e
    except Exception as e:
        logger.exception("Steal failed | url=%s stage=%s", url, stage)
        raise UpstreamError(f"Could not extract a recipe from {url}") from e

    logger.info(
        "Steal success | url=%s title=%s ingredients=%d instructions=%d",
        url,
        recipe.title,
        len(recipe.ingredients),
        len(recipe.instructions),
    )
    return recipe


@enveloped("Failed to steal recipe")
def steal(url: str, client=None) -> DigestPayload:
    if not isinstance(url, str) or not url.strip().lower().startswith(("http://", "https://")):
        raise ValidationError("url: a http(s) URL is required")
    return url_to_recipe(url.strip(), client=client)


def steal_and_digest(conn: sqlite3.Connection, url: str, client: Optional[object] = None) -> Result:
    """Steal a recipe and store it; the model's output is validated again by digest."""
    stolen = steal(url, client=client)
    if isinstance(stolen, Failure):
        return stolen
    return digest_recipe(conn, stolen.data.model_dump())
