from __future__ import annotations

import math
from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, StrictBool, model_validator

# SQLite INTEGER is a signed 64-bit value
MAX_INTEGER = 2**63 - 1


def _text(value):
    if not isinstance(value, str):
        raise ValueError("must be a string")
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")
    return value


def _optional_text(value):
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError("must be a string or null")
    return value


def _number(value):
    # bool is an int subclass; JSON true/false is not a quantity
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("must be a number")
    # json.loads turns 1e999 into inf; neither inf nor nan serializes back out
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError("must be a finite number")
    return value


def _whole_number(value):
    value = _number(value)
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError("must be a whole number")
        value = int(value)
    if abs(value) > MAX_INTEGER:
        raise ValueError("is too large")
    return value


def _at_least(minimum):
    def check(value):
        value = _whole_number(value)
        if value < minimum:
            raise ValueError(f"must be at least {minimum}")
        return value

    return check


def _amount(value):
    value = _number(value)
    try:
        value = float(value)
    except OverflowError:
        raise ValueError("is too large") from None
    if value < 0:
        raise ValueError("must not be negative")
    return value


def _list(value):
    if not isinstance(value, list):
        raise ValueError("must be a list")
    return value


Text = Annotated[str, BeforeValidator(_text)]
OptionalText = Annotated[Optional[str], BeforeValidator(_optional_text)]
Amount = Annotated[float, BeforeValidator(_amount)]
Minutes = Annotated[int, BeforeValidator(_at_least(0))]
Count = Annotated[int, BeforeValidator(_at_least(1))]
RowId = Annotated[int, BeforeValidator(_whole_number)]


# ---- inputs ----------------------------------------------------------------


class RecipeCreate(BaseModel):
    title: Text
    description: OptionalText = None
    servings: Count
    preptime: Minutes
    cooktime: Minutes
    notes: OptionalText = None


class IngredientFields(BaseModel):
    name: Text
    amount: Amount
    unit: Text


class InstructionFields(BaseModel):
    order: Count
    content: Text


class IngredientCreate(IngredientFields):
    recipe: RowId


class InstructionCreate(InstructionFields):
    recipe: RowId


class IngredientUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[Text] = None
    amount: Optional[Amount] = None
    unit: Optional[Text] = None


class InstructionUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    order: Optional[Count] = None
    content: Optional[Text] = None


class NotesUpdate(BaseModel):
    notes: OptionalText = None


class DigestPayload(RecipeCreate):
    """A whole recipe as pasted by the user or returned by the extractor."""

    ingredients: Annotated[List[IngredientFields], BeforeValidator(_list), Field(min_length=1)]
    instructions: Annotated[List[InstructionFields], BeforeValidator(_list), Field(min_length=1)]

    @model_validator(mode="after")
    def unique_steps(self):
        orders = [step.order for step in self.instructions]
        if len(orders) != len(set(orders)):
            raise ValueError("instruction order values must be unique")
        return self


class CookCreate(BaseModel):
    recipe: RowId
    created_by: OptionalText = None
    notes: OptionalText = None


class CheckedUpdate(BaseModel):
    checked: StrictBool


class StealRequest(BaseModel):
    url: Optional[str] = None
    # only a real JSON true stores the recipe; anything else is a preview or an error
    digest: StrictBool = False


# ---- rows ------------------------------------------------------------------


class Recipe(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    servings: int
    preptime: int
    cooktime: int
    notes: Optional[str] = None
    created_at: datetime


class Ingredient(BaseModel):
    id: int
    name: str
    amount: float
    unit: str
    recipe: int


class Instruction(BaseModel):
    id: int
    order: int
    recipe: int
    content: str


class GroupedRecipe(BaseModel):
    recipe: Recipe
    ingredients: List[Ingredient]
    instructions: List[Instruction]


class RecipePage(BaseModel):
    items: List[Recipe]
    total: int
    total_pages: int
    page: int
    page_size: int


class Cook(BaseModel):
    id: int
    created_at: datetime
    created_by: Optional[str] = None
    recipe: int
    notes: Optional[str] = None


class CookIngredient(Ingredient):
    checked: bool = False


class CookInstruction(Instruction):
    checked: bool = False


class CookSession(BaseModel):
    cook: Cook
    ingredients: List[CookIngredient]
    instructions: List[CookInstruction]
