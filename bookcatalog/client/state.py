# bookcatalog/client/state.py
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .api import ApiClient

logger = logging.getLogger(__name__)


@dataclass
class AppState:
    user: Optional[Dict[str, Any]] = None
    books: List[Dict[str, Any]] = field(default_factory=list)


class Store:
    """In-memory application state plus the actions that load it."""

    def __init__(self, api: ApiClient):
        self.api = api
        self.state = AppState()

    def set_user(self, user: Optional[Dict[str, Any]]) -> None:
        self.state.user = user

    def set_books(self, books: List[Dict[str, Any]]) -> None:
        self.state.books = list(books)

    def fetch_books(self) -> List[Dict[str, Any]]:
        """Load the book list; on failure the list is emptied and the error re-raised."""
        try:
            data = self.api.get("/api/books")
        except Exception:
            logger.error("Error fetching books", exc_info=True)
            self.set_books([])
            raise
        if not isinstance(data, dict):
            logger.error("Error fetching books: unexpected response %r", data)
            self.set_books([])
            raise ValueError("Unexpected books response")
        self.set_books(data.get("books") or [])
        return self.state.books
