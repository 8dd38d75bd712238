"""
Read-through access to the book catalogue.

``list_active_books()`` is the only entry point. It answers from the
cache when the ``books:all`` entry is present and otherwise loads the
active books from the store and repopulates the cache for
``BOOKS_CACHE_TTL`` seconds. The cache may therefore be stale for at
most that long after a change in the store.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List

from ..context import AppContext
from ..errors import CacheError

logger = logging.getLogger(__name__)

BOOKS_CACHE_KEY = "books:all"
BOOKS_CACHE_TTL = 300

ACTIVE_BOOKS_SQL = (
    "SELECT id, title, author, description FROM books WHERE status = :status"
)
ACTIVE_STATUS = "active"


async def list_active_books(context: AppContext) -> List[Dict[str, Any]]:
    """Return the active books, serving from cache when possible.

    Parameters
    ----------
    context : AppContext
        Provides the store and cache clients.

    Returns
    -------
    List[Dict[str, Any]]
        Rows with ``id``, ``title``, ``author`` and ``description``.

    Raises
    ------
    CacheError
        When the cache lookup fails.
    StoreError
        When the store query fails.

    A failure to write the cache after a successful store read is
    logged and otherwise ignored; the next request will try again.
    """
    cached = await context.cache.get(BOOKS_CACHE_KEY)
    if cached:
        return json.loads(cached)

    books = await context.store.execute(ACTIVE_BOOKS_SQL, {"status": ACTIVE_STATUS})

    try:
        await context.cache.set(BOOKS_CACHE_KEY, json.dumps(books), BOOKS_CACHE_TTL)
    except CacheError:
        logger.warning("Could not cache %s; serving fresh rows uncached", BOOKS_CACHE_KEY)

    return books
