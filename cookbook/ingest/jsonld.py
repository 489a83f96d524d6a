"""Find a schema.org Recipe object in a page's JSON-LD blocks.

Most recipe sites embed one for search engines. It is passed to the model as
a hint next to the page text; it is never trusted on its own.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, List, Optional

logger = logging.getLogger(__name__)

_JSON_LD_RE = re.compile(
    r'<script[^>]+type=["\']application/ld\+json["\'][^>]*>(.*?)</script>',
    flags=re.S | re.I,
)
MAX_HINT_CHARS = 20_000


def extract_json_ld_blocks(html: str) -> List[Any]:
    blocks: List[Any] = []
    for m in _JSON_LD_RE.finditer(html or ""):
        body = m.group(1).strip()
        if not body:
            continue
        try:
            parsed = json.loads(body)
        except json.JSONDecodeError:
            # some pages wrap the object in junk; try the outermost braces
            start = body.find("{")
            end = body.rfind("}")
            if start == -1 or end == -1:
                continue
            try:
                parsed = json.loads(body[start : end + 1])
            except json.JSONDecodeError:
                logger.debug("Skipping unparseable JSON-LD block (%d chars)", len(body))
                continue
        if isinstance(parsed, list):
            blocks.extend(parsed)
        elif isinstance(parsed, dict) and isinstance(parsed.get("@graph"), list):
            blocks.extend(parsed["@graph"])
        else:
            blocks.append(parsed)
    return blocks


def _is_recipe(obj: dict) -> bool:
    t = obj.get("@type") or obj.get("type")
    if isinstance(t, list):
        return "Recipe" in t
    return isinstance(t, str) and t.lower() == "recipe"


def find_recipe_object(blocks: List[Any]) -> Optional[dict]:
    for obj in blocks:
        if not isinstance(obj, dict):
            continue
        if _is_recipe(obj):
            return obj
        # some sites nest the recipe under another node
        for v in obj.values():
            if isinstance(v, dict) and _is_recipe(v):
                return v
    return None


def find_recipe_json_ld(html: str) -> Optional[str]:
    """Return the page's Recipe JSON-LD as a (truncated) JSON string, or None."""
    recipe = find_recipe_object(extract_json_ld_blocks(html))
    if recipe is None:
        return None
    hint = json.dumps(recipe, ensure_ascii=False)
    if len(hint) > MAX_HINT_CHARS:
        hint = hint[:MAX_HINT_CHARS] + "..."
    return hint
