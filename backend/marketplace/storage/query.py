# Overview: Document query language shared by every repository backend.

"""
Document query matching and sorting.

Both repository backends evaluate queries through this module, so a query
means exactly the same thing in memory and in SQL.

Query shape (a dict, all keys must match):
- {"status": "active"}                       equality
- {"price_cents": {"$gte": 100, "$lte": 500}} operators: $eq $ne $in $gt $gte $lt $lte $icontains
- {"$or": [{...}, {...}]}                    any sub-query matches
- {"items.vendor_id": "abc"}                 dotted path; lists match when any element matches

Sort shape: [("price_cents", 1), ("created_at", -1)]
"""

from __future__ import annotations

from typing import Any, Iterable

_MISSING = object()

OPERATORS = {"$eq", "$ne", "$in", "$gt", "$gte", "$lt", "$lte", "$icontains"}


class QueryError(ValueError):
    """Raised for queries the matcher does not understand."""


def resolve_path(document: Any, path: str) -> list:
    """
    Return every value reachable at a dotted path.

    Lists along the path fan out, so "items.vendor_id" yields one value per
    line item. Missing keys contribute nothing.
    """
    values = [document]
    for part in path.split("."):
        next_values = []
        for value in values:
            if isinstance(value, list):
                candidates = value
            else:
                candidates = [value]
            for candidate in candidates:
                if isinstance(candidate, dict) and part in candidate:
                    next_values.append(candidate[part])
        values = next_values
    flattened = []
    for value in values:
        if isinstance(value, list):
            flattened.extend(value)
        else:
            flattened.append(value)
    return flattened


def _compare(op: str, value: Any, operand: Any) -> bool:
    if op == "$eq":
        return value == operand
    if op == "$ne":
        return value != operand
    if op == "$in":
        return value in operand
    if op == "$icontains":
        if value is None:
            return False
        return str(operand).lower() in str(value).lower()
    if value is None or operand is None:
        return False
    try:
        if op == "$gt":
            return value > operand
        if op == "$gte":
            return value >= operand
        if op == "$lt":
            return value < operand
        if op == "$lte":
            return value <= operand
    except TypeError:
        return False
    raise QueryError(f"Unsupported operator {op}")


def _is_operator_dict(condition: Any) -> bool:
    return isinstance(condition, dict) and bool(condition) and all(k.startswith("$") for k in condition)


def _match_condition(values: list, condition: Any) -> bool:
    if _is_operator_dict(condition):
        for op, operand in condition.items():
            if op not in OPERATORS:
                raise QueryError(f"Unsupported operator {op}")
            if op == "$ne":
                # $ne holds when no reachable value equals the operand
                if any(v == operand for v in values):
                    return False
                continue
            if not any(_compare(op, v, operand) for v in values):
                return False
        return True
    return any(v == condition for v in values)


def matches(document: dict, query: dict | None) -> bool:
    """True when the document satisfies every clause of the query."""
    if not query:
        return True
    for key, condition in query.items():
        if key == "$or":
            if not isinstance(condition, (list, tuple)):
                raise QueryError("$or expects a list of queries")
            if not any(matches(document, sub) for sub in condition):
                return False
            continue
        if key.startswith("$"):
            raise QueryError(f"Unsupported top-level operator {key}")
        if not _match_condition(resolve_path(document, key), condition):
            return False
    return True


def _sort_value(document: dict, field: str):
    values = resolve_path(document, field)
    return values[0] if values else None


def sort_documents(documents: Iterable[dict], sort: list[tuple[str, int]] | None) -> list[dict]:
    """
    Stable multi-key sort. Documents missing a sort field go last in
    either direction.
    """
    result = list(documents)
    if not sort:
        return result
    # Apply keys from least to most significant; Python's sort is stable
    for field, direction in reversed(sort):
        present = [d for d in result if _sort_value(d, field) is not None]
        absent = [d for d in result if _sort_value(d, field) is None]
        present.sort(key=lambda d: _sort_value(d, field), reverse=direction < 0)
        result = present + absent
    return result


def apply_query(
    documents: Iterable[dict],
    query: dict | None = None,
    sort: list[tuple[str, int]] | None = None,
    limit: int | None = None,
) -> list[dict]:
    """Filter, sort and limit a sequence of documents."""
    selected = [d for d in documents if matches(d, query)]
    selected = sort_documents(selected, sort)
    if limit is not None:
        selected = selected[: max(limit, 0)]
    return selected
