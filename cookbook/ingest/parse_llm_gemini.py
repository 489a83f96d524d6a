"""
Gemini recipe extraction: prompt the model, pull JSON out of its reply and
validate it as a digest payload.
"""

from __future__ import annotations
import json
import logging
from typing import Optional

import jsonschema
from google import genai
from google.genai import types
from pydantic import ValidationError

from cookbook.errors import UpstreamError
from cookbook.ingest.jsonld import find_recipe_json_ld
from cookbook.ingest.prompt import build_prompt
from cookbook.models.recipe_schema import DigestPayload
from cookbook.services.envelope import describe_validation_error
from cookbook.settings import settings, RECIPE_RESPONSE_SCHEMA

logger = logging.getLogger(__name__)

ERROR_MESSAGES = {
    "no_recipe": "No recipe found on the page",
    "partial_data": "The page only has part of a recipe",
    "ambiguous": "The recipe data on the page is ambiguous or unreliable",
}


def _strip_markdown_fence(raw: str) -> str:
    if not raw:
        return raw
    stripped = raw.strip()
    if stripped.startswith("```"):
        content = stripped[3:]
    else:
        fence_start = stripped.find("```")
        if fence_start == -1:
            return raw
        content = stripped[fence_start + 3 :]
    content = content.lstrip()
    if content.lower().startswith("json"):
        content = content[4:]
    content = content.lstrip()
    closing = content.rfind("```")
    if closing != -1:
        content = content[:closing]
    return content.strip() or raw


def _extract_json_fragment(raw: str) -> str | None:
    """Return the longest balanced {...} span, skipping braces inside strings."""
    start = None
    depth = 0
    in_string = False
    escape = False
    best: tuple[int, int] | None = None
    for idx, ch in enumerate(raw):
        if escape:
            escape = False
            continue
        if ch == "\\":
            escape = True
            continue
        if ch == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if ch == "{":
            if depth == 0:
                start = idx
            depth += 1
        elif ch == "}":
            if depth:
                depth -= 1
                if depth == 0 and start is not None:
                    if best is None or (idx - start) > (best[1] - best[0]):
                        best = (start, idx + 1)
    if best is None:
        return None
    return raw[best[0] : best[1]]


def parse_candidate_json(raw: str) -> dict | None:
    candidates: list[str] = []

    def _add(value: str | None) -> None:
        if not value:
            return
        if value not in candidates:
            candidates.append(value)

    _add(_strip_markdown_fence(raw))
    _add(raw.strip())
    _add(_extract_json_fragment(raw))

    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data
    return None


def _extract_response_text(resp) -> str | None:
    raw = getattr(resp, "text", None)
    if raw:
        return raw
    candidates = getattr(resp, "candidates", None) or []
    for cand in candidates:
        content = getattr(cand, "content", None)
        if content is None:
            continue
        parts = getattr(content, "parts", None) or []
        for part in parts:
            text_value = getattr(part, "text", None)
            if text_value:
                return text_value
    return None


def _raise_for_model_error(data: dict) -> None:
    error = data.get("error")
    if not error:
        return
    if isinstance(error, dict):
        code = error.get("code")
        reason = error.get("reason")
    else:
        code, reason = None, str(error)
    message = ERROR_MESSAGES.get(code, "The model declined to extract a recipe")
    if reason:
        message = f"{message}: {reason}"
    logger.warning("Model returned extraction error code=%s reason=%s", code, reason)
    raise UpstreamError(message)


def make_client() -> genai.Client:
    if not settings.GEMINI_API_KEY:
        raise UpstreamError("GEMINI_API_KEY not configured.")
    return genai.Client(api_key=settings.GEMINI_API_KEY)


def parse_recipe_text(
    text: str,
    url: str,
    html: Optional[str] = None,
    client: Optional[genai.Client] = None,
) -> DigestPayload:
    """Ask Gemini for a recipe and return it as a validated DigestPayload.

    Raises UpstreamError when the model errors, replies without JSON, reports
    that it cannot extract a recipe, or twice returns data that fails validation.
    """
    client = client or make_client()
    page_json_ld = find_recipe_json_ld(html) if html else None
    prompt = build_prompt(url, text, RECIPE_RESPONSE_SCHEMA, page_json_ld)

    last_error = None
    for attempt in range(2):
        try:
            resp = client.models.generate_content(
                model=settings.GEMINI_MODEL,
                contents=prompt,
                config=types.GenerateContentConfig(
                    temperature=0,
                    response_mime_type="application/json",
                ),
            )
        except Exception as e:
            logger.exception("Gemini call failed for %s", url)
            raise UpstreamError(f"Extraction model call failed: {e}") from e

        raw = _extract_response_text(resp)
        if not raw:
            raise UpstreamError("No content from Gemini response.")
        data = parse_candidate_json(raw)
        if data is None:
            logger.error("Gemini output missing JSON block. Snippet: %s", raw[:200])
            raise UpstreamError("Failed to parse JSON from the extraction model.")

        # Schema drift is logged but the pydantic model below has the final say
        try:
            jsonschema.validate(instance=data, schema=RECIPE_RESPONSE_SCHEMA)
        except jsonschema.ValidationError as e:
            logger.warning("Gemini response does not align with RECIPE_RESPONSE_SCHEMA: %s", e.message)

        _raise_for_model_error(data)

        try:
            recipe = DigestPayload.model_validate(data)
        except ValidationError as e:
            last_error = describe_validation_error(e)
            logger.warning("Pydantic validation failed for Gemini output: %s", last_error)
            if attempt == 0:
                logger.info("Retrying Gemini extraction once more due to validation error.")
                continue
            break

        logger.info("Parsed recipe: %s", recipe.title)
        logger.debug("Parsed recipe payload: %s", json.dumps(recipe.model_dump(), ensure_ascii=False))
        return recipe

    raise UpstreamError(f"Extracted recipe failed validation: {last_error}")
