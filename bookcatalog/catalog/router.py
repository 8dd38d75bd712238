"""
Route definitions for the catalogue API.

Endpoints under /api/books:
- GET  /      : list active books (read-through cache)
- GET  /me    : identity of the authenticated caller
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..auth import require_auth
from ..context import AppContext, get_context
from ..errors import FetchError, error_body
from ..models import AuthenticatedUser, Book, ErrorResponse
from .schemas import BooksResponse, CurrentUserResponse
from .store import list_active_books

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/books", tags=["catalog"])


@router.get("", response_model=BooksResponse, responses={500: {"model": ErrorResponse}})
async def list_books(context: AppContext = Depends(get_context)):
    """Return every book whose status is ``active``."""
    try:
        rows = await list_active_books(context)
        return BooksResponse(books=[Book(**row) for row in rows])
    except Exception as exc:
        logger.error("Error fetching books: %s", exc, exc_info=True)
        err = FetchError()
        body = error_body(
            str(err), err.code, str(exc), expose_detail=not context.settings.is_production
        )
        return JSONResponse(status_code=err.status_code, content=body)


@router.get("/me", response_model=CurrentUserResponse)
async def current_user(user: AuthenticatedUser = Depends(require_auth)) -> CurrentUserResponse:
    return CurrentUserResponse(user=user.claims)
