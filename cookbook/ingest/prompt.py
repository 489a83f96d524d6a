"""Extraction prompt sent to the model when stealing a recipe."""

from __future__ import annotations

import json
from typing import Optional

EXAMPLE_OUTPUT = {
    "title": "Classic Chocolate Chip Cookies",
    "description": "Soft and chewy homemade chocolate chip cookies with crispy edges",
    "servings": 24,
    "preptime": 15,
    "cooktime": 12,
    "notes": "For chewier cookies, slightly underbake. Store in an airtight container up to 5 days.",
    "ingredients": [
        {"name": "all-purpose flour", "amount": 2.25, "unit": "cup"},
        {"name": "unsalted butter, softened", "amount": 1, "unit": "cup"},
        {"name": "large eggs", "amount": 2, "unit": "whole"},
        {"name": "vanilla extract", "amount": 2, "unit": "tsp"},
    ],
    "instructions": [
        {"order": 1, "content": "Preheat oven to 375°F (190°C). Line baking sheets with parchment paper."},
        {"order": 2, "content": "Cream together the butter and sugars until light and fluffy, about 3-4 minutes."},
        {"order": 3, "content": "Beat in the eggs one at a time, then stir in the vanilla."},
    ],
}

EXAMPLE_ERROR = {"error": {"code": "partial_data", "reason": "The page lists ingredients but no method."}}


def build_prompt(url: str, text: str, schema: dict, page_json_ld: Optional[str] = None) -> str:
    return "\n\n".join(
        part
        for part in [
            "You are an expert recipe extraction assistant. Extract exactly ONE recipe from the page below into the JSON schema at the end.",
            f"SOURCE_URL: {url}",
            "Ignore blog content, ads, life stories and comments. Use only the actual recipe.",
            "Recipe basics:\n"
            "- Use the exact recipe title, without extra punctuation.\n"
            "- Write a 1-2 sentence description only if the page has one; otherwise null.\n"
            "- servings is the number of servings or the yield.\n"
            "- preptime and cooktime are whole minutes; convert hours (\"1 hour 30 minutes\" -> 90).\n"
            "- For a range (\"30-40 minutes\") use the first value. Split a total time into prep and cook when possible.\n"
            "- Put tips, storage instructions and variations in notes; otherwise null.",
            "Ingredients:\n"
            "- Give every ingredient a name, an amount and a unit.\n"
            "- Convert fractions to decimals (\"1/2\" -> 0.5, \"1 1/4\" -> 1.25).\n"
            "- Use standard unit abbreviations: cup, tbsp, tsp, oz, lb, g, kg, ml, l.\n"
            "- For counted items use \"whole\" or \"piece\" (\"2 eggs\" -> amount 2, unit \"whole\").\n"
            "- Keep names descriptive (\"all-purpose flour\", not \"flour\") and leave preparation notes out of them.",
            "Instructions:\n"
            "- Number steps sequentially starting from 1; every order value is unique.\n"
            "- Keep the original wording, cleaned of HTML artifacts, with temperatures, times and techniques intact.",
            "Missing values: servings 4, preptime 30, cooktime 30, description null, notes null. "
            "Never invent ingredients or steps that are not on the page.",
            "If you cannot return a complete, reliable recipe, return ONLY an error object instead:\n"
            "- code \"no_recipe\": the page contains no recipe.\n"
            "- code \"partial_data\": ingredients or instructions are missing or cut off.\n"
            "- code \"ambiguous\": the page holds several recipes or the data is contradictory or unreliable.\n"
            "Example: " + json.dumps(EXAMPLE_ERROR, ensure_ascii=False),
            "Respond with a single JSON object and nothing else: no prose, no commentary, one object only.",
            "Example output:\n" + json.dumps(EXAMPLE_OUTPUT, ensure_ascii=False, indent=2),
            f"PAGE_JSON_LD: {page_json_ld}" if page_json_ld else "",
            "PAGE_TEXT:\n" + text if text else "",
            "OUTPUT JSON SCHEMA:\n" + json.dumps(schema, ensure_ascii=False, indent=2),
        ]
        if part
    )
