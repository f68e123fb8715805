"""
Document query language tests.

Both repository backends evaluate queries through storage.query, so these
cases pin the semantics for both.
"""

import pytest

from marketplace.storage.query import QueryError, apply_query, matches, resolve_path, sort_documents

ORDER = {
    "id": "o1",
    "status": "pending",
    "items": [
        {"vendor_id": "v1", "price_cents": 100},
        {"vendor_id": "v2", "price_cents": 300},
    ],
    "amounts": {"total_cents": 400},
}


class TestResolvePath:
    def test_nested_dict(self):
        assert resolve_path(ORDER, "amounts.total_cents") == [400]

    def test_list_fans_out(self):
        assert resolve_path(ORDER, "items.vendor_id") == ["v1", "v2"]

    def test_missing_path(self):
        assert resolve_path(ORDER, "customer_info.name") == []


class TestMatches:
    def test_empty_query_matches_everything(self):
        assert matches(ORDER, None)
        assert matches(ORDER, {})

    def test_equality(self):
        assert matches(ORDER, {"status": "pending"})
        assert not matches(ORDER, {"status": "shipped"})

    def test_any_list_element_matches(self):
        assert matches(ORDER, {"items.vendor_id": "v2"})
        assert not matches(ORDER, {"items.vendor_id": "v3"})

    def test_comparison_operators(self):
        assert matches(ORDER, {"amounts.total_cents": {"$gte": 400, "$lt": 500}})
        assert not matches(ORDER, {"amounts.total_cents": {"$gt": 400}})
        assert matches(ORDER, {"items.price_cents": {"$lte": 100}})

    def test_in_and_ne(self):
        assert matches(ORDER, {"status": {"$in": ["pending", "confirmed"]}})
        assert matches(ORDER, {"status": {"$ne": "cancelled"}})
        # $ne fails when any fanned-out value equals the operand
        assert not matches(ORDER, {"items.vendor_id": {"$ne": "v1"}})

    def test_icontains(self):
        doc = {"name": "Wireless Headphones", "description": None}
        assert matches(doc, {"name": {"$icontains": "HEAD"}})
        assert not matches(doc, {"description": {"$icontains": "head"}})

    def test_or(self):
        query = {"$or": [{"status": "shipped"}, {"items.vendor_id": "v1"}]}
        assert matches(ORDER, query)
        assert not matches(ORDER, {"$or": [{"status": "shipped"}, {"id": "o2"}]})

    def test_comparison_with_missing_value_is_false(self):
        assert not matches({"id": "x"}, {"price_cents": {"$gte": 0}})

    def test_unknown_operator_rejected(self):
        with pytest.raises(QueryError):
            matches(ORDER, {"status": {"$regex": "p.*"}})

    def test_unknown_top_level_operator_rejected(self):
        with pytest.raises(QueryError):
            matches(ORDER, {"$and": []})


class TestSortAndLimit:
    DOCS = [
        {"id": "a", "price_cents": 300, "rating": 4.0},
        {"id": "b", "price_cents": 100, "rating": 4.0},
        {"id": "c", "rating": 5.0},
        {"id": "d", "price_cents": 200, "rating": 3.0},
    ]

    def test_missing_values_sort_last_both_directions(self):
        ascending = [d["id"] for d in sort_documents(self.DOCS, [("price_cents", 1)])]
        descending = [d["id"] for d in sort_documents(self.DOCS, [("price_cents", -1)])]
        assert ascending == ["b", "d", "a", "c"]
        assert descending == ["a", "d", "b", "c"]

    def test_multi_key_sort(self):
        result = sort_documents(self.DOCS, [("rating", -1), ("price_cents", 1)])
        assert [d["id"] for d in result] == ["c", "b", "a", "d"]

    def test_no_sort_keeps_order(self):
        assert [d["id"] for d in sort_documents(self.DOCS, None)] == ["a", "b", "c", "d"]

    def test_apply_query_filters_sorts_and_limits(self):
        result = apply_query(self.DOCS, {"rating": {"$gte": 4.0}}, [("rating", -1)], limit=2)
        assert [d["id"] for d in result] == ["c", "a"]
