"""
Pydantic schema definitions for the catalog module.

``BooksResponse`` is the envelope returned by ``GET /api/books``: a
stable ``code`` field that clients switch on plus the list of books.
Each book carries the four fields projected from the store.
"""

from typing import Any, Dict, List

from pydantic import BaseModel, Field

from ..models import Book

SUCCESS = "SUCCESS"


class BooksResponse(BaseModel):
    code: str = SUCCESS
    books: List[Book] = Field(default_factory=list)


class CurrentUserResponse(BaseModel):
    """Identity of the caller, as decoded from their bearer token."""

    code: str = SUCCESS
    user: Dict[str, Any] = Field(default_factory=dict)
