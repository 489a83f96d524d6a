"""Operation boundary: turn raised errors into a Failure envelope."""

from __future__ import annotations

import functools
import logging
import sqlite3
from typing import Callable

from pydantic import ValidationError as PydanticValidationError

from cookbook.errors import CookbookError, ValidationError
from cookbook.models.result import Failure, Result, Success

logger = logging.getLogger(__name__)


def describe_validation_error(exc: PydanticValidationError) -> str:
    """Flatten pydantic errors into `field: reason; ...`."""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "payload"
        msg = err.get("msg", "invalid value")
        # pydantic prefixes messages raised from our validators
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        parts.append(f"{loc}: {msg}")
    return "; ".join(parts)


def enveloped(fallback: str) -> Callable:
    """Wrap an operation so it returns Success/Failure instead of raising.

    `fallback` is used when the underlying error carries no usable text.
    """

    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(*args, **kwargs) -> Result:
            try:
                return Success(data=fn(*args, **kwargs))
            except PydanticValidationError as e:
                message = describe_validation_error(e) or fallback
                logger.warning("%s rejected input: %s", fn.__name__, message)
                return Failure(message=message, code=ValidationError.__name__)
            except CookbookError as e:
                logger.warning("%s failed: %s (%s)", fn.__name__, e.message, e.code)
                return Failure(message=e.message or fallback, code=e.code)
            except OverflowError as e:
                # ids that do not fit a SQLite INTEGER
                logger.warning("%s rejected input: %s", fn.__name__, e)
                return Failure(message=str(e) or fallback, code=ValidationError.__name__)
            except sqlite3.Error as e:
                logger.exception("%s failed in the store", fn.__name__)
                return Failure(message=str(e) or fallback)
            except Exception:
                logger.exception("%s failed unexpectedly", fn.__name__)
                return Failure(message=fallback)

        return wrapper

    return decorator
