"""Uniform result envelope returned by every public operation."""

from __future__ import annotations

from typing import Any, Literal, Union

from pydantic import BaseModel, Field


class Success(BaseModel):
    success: Literal[True] = True
    data: Any


class Failure(BaseModel):
    success: Literal[False] = False
    message: str
    # Error class name; kept off the wire so the envelope stays two keys.
    code: str = Field(default="CookbookError", exclude=True)


Result = Union[Success, Failure]


def envelope(result: Result) -> dict:
    """JSON-ready dict with exactly one of `data` or `message`."""
    return result.model_dump(mode="json")
