"""Error taxonomy shared by the services, the HTTP layer and the CLI."""

from __future__ import annotations


class CookbookError(Exception):
    """Base class for errors that are safe to show to the caller."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def code(self) -> str:
        return type(self).__name__


class ValidationError(CookbookError):
    """Malformed or missing input. Raised before the store is touched."""


class NotFoundError(CookbookError):
    pass


class ConflictError(CookbookError):
    """A uniqueness constraint was violated."""


class TransactionError(CookbookError):
    """A multi-statement write failed and was rolled back."""


class UpstreamError(CookbookError):
    """Fetching or extracting a recipe from a remote page failed."""
