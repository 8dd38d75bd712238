"""
Client side of the catalog: an HTTP client for the API and the
in-memory state store a UI renders from.
"""

from .api import ApiClient, TokenStorage  # noqa: F401
from .state import AppState, Store  # noqa: F401
