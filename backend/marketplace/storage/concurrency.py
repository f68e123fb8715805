# Overview: Unit-of-work helpers with retry on optimistic-concurrency conflicts.

from __future__ import annotations

import time
from functools import wraps

from flask import current_app

from . import get_repository


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.05):
    """
    Execute func inside a unit of work, retrying on concurrency conflicts.

    The unit of work has already been rolled back when a conflict escapes
    it, so each attempt starts from freshly read documents.
    """
    repository = get_repository()
    for attempt in range(attempts):
        try:
            with repository.unit_of_work():
                return func()
        except repository.conflict_errors:
            if attempt >= attempts - 1:
                raise
            current_app.logger.warning(
                "Concurrency conflict in %s, retrying (attempt %d of %d)",
                getattr(func, "__name__", "unit of work"), attempt + 2, attempts,
            )
            time.sleep(backoff_base * (2 ** attempt))


def transactional(func):
    """Run the decorated service function as one retried unit of work."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        def _op():
            return func(*args, **kwargs)
        _op.__name__ = func.__name__
        return run_with_retry(_op)
    return wrapper
