# Overview: Storage package; repository lookup for the current application.

from flask import current_app

from .base import (
    COLLECTIONS,
    ORDERS,
    PRODUCTS,
    USERS,
    VENDORS,
    UNIQUE_FIELDS,
    DuplicateKeyError,
    Repository,
    UnknownCollectionError,
    new_id,
)
from .memory import MemoryRepository

EXTENSION_KEY = "marketplace.repository"


def get_repository() -> Repository:
    """Repository bound to the active Flask application."""
    return current_app.extensions[EXTENSION_KEY]


__all__ = [
    "COLLECTIONS", "ORDERS", "PRODUCTS", "USERS", "VENDORS", "UNIQUE_FIELDS",
    "Repository", "MemoryRepository", "UnknownCollectionError", "DuplicateKeyError",
    "EXTENSION_KEY", "get_repository", "new_id",
]
