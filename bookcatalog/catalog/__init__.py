"""
Catalog package for the book catalog API.

This package contains the schemas, the read-through data access and the
route definitions behind ``/api/books``. The list of active books is
served from the cache when possible and from the relational store
otherwise.
"""

from .router import router as catalog_router  # noqa: F401
