"""
Repository contract tests, run against both storage backends.
"""

import pytest

from marketplace.storage import PRODUCTS, USERS, VENDORS, DuplicateKeyError, UnknownCollectionError, get_repository


@pytest.fixture
def repo(app):
    with app.app_context():
        yield get_repository()


class TestDocuments:
    def test_insert_assigns_id_and_timestamps(self, repo):
        doc = repo.insert(USERS, {"name": "Ann"})
        assert len(doc["id"]) == 24
        assert doc["created_at"] and doc["updated_at"]
        assert repo.get(USERS, doc["id"])["name"] == "Ann"

    def test_reads_return_copies(self, repo):
        doc = repo.insert(PRODUCTS, {"name": "Lamp", "images": ["a.png"]})
        fetched = repo.get(PRODUCTS, doc["id"])
        fetched["images"].append("b.png")
        assert repo.get(PRODUCTS, doc["id"])["images"] == ["a.png"]

    def test_get_missing(self, repo):
        assert repo.get(USERS, "0" * 24) is None

    def test_update_sets_fields(self, repo):
        doc = repo.insert(USERS, {"name": "Ann", "phone": ""})
        updated = repo.update(USERS, doc["id"], {"phone": "555"})
        assert updated["phone"] == "555"
        assert updated["name"] == "Ann"
        assert repo.update(USERS, "0" * 24, {"phone": "1"}) is None

    def test_increment(self, repo):
        doc = repo.insert(USERS, {"order_count": 2})
        repo.increment(USERS, doc["id"], {"order_count": -1, "total_spent_cents": 500})
        stored = repo.get(USERS, doc["id"])
        assert stored["order_count"] == 1
        assert stored["total_spent_cents"] == 500

    def test_delete(self, repo):
        doc = repo.insert(USERS, {"name": "Ann"})
        assert repo.delete(USERS, doc["id"]) is True
        assert repo.delete(USERS, doc["id"]) is False
        assert repo.get(USERS, doc["id"]) is None

    def test_find_count_and_sort(self, repo):
        for name, price in [("a", 300), ("b", 100), ("c", 200)]:
            repo.insert(PRODUCTS, {"name": name, "price_cents": price, "status": "active"})
        repo.insert(PRODUCTS, {"name": "d", "price_cents": 50, "status": "inactive"})

        found = repo.find(PRODUCTS, {"status": "active"}, sort=[("price_cents", 1)])
        assert [d["name"] for d in found] == ["b", "c", "a"]
        assert repo.count(PRODUCTS) == 4
        assert repo.find_one(PRODUCTS, {"price_cents": {"$lt": 100}})["name"] == "d"

    def test_unknown_collection(self, repo):
        with pytest.raises(UnknownCollectionError):
            repo.get("carts", "x")


class TestUniqueFields:
    def test_duplicate_email_rejected(self, repo):
        repo.insert(USERS, {"name": "Ann", "email": "ann@example.com"})
        with pytest.raises(DuplicateKeyError) as exc:
            repo.insert(USERS, {"name": "Imposter", "email": "ann@example.com"})
        assert exc.value.field == "email"
        assert repo.count(USERS) == 1

    def test_one_vendor_per_user(self, repo):
        repo.insert(VENDORS, {"user_id": "u1", "store_name": "First"})
        with pytest.raises(DuplicateKeyError):
            repo.insert(VENDORS, {"user_id": "u1", "store_name": "Second"})
        assert [d["store_name"] for d in repo.find(VENDORS, {"user_id": "u1"})] == ["First"]

    def test_duplicate_inside_unit_rolls_back_whole_unit(self, repo):
        repo.insert(VENDORS, {"user_id": "u1", "store_name": "First"})
        with pytest.raises(DuplicateKeyError):
            with repo.unit_of_work():
                repo.insert(PRODUCTS, {"name": "Lamp"})
                repo.insert(VENDORS, {"user_id": "u1", "store_name": "Second"})
        assert repo.count(PRODUCTS) == 0
        assert repo.count(VENDORS) == 1

    def test_delete_frees_the_value(self, repo):
        doc = repo.insert(USERS, {"email": "ann@example.com"})
        repo.delete(USERS, doc["id"])
        again = repo.insert(USERS, {"email": "ann@example.com"})
        assert repo.find_one(USERS, {"email": "ann@example.com"})["id"] == again["id"]

    def test_update_moves_the_value(self, repo):
        ann = repo.insert(USERS, {"email": "ann@example.com"})
        bob = repo.insert(USERS, {"email": "bob@example.com"})
        with pytest.raises(DuplicateKeyError):
            repo.update(USERS, bob["id"], {"email": "ann@example.com"})

        repo.update(USERS, ann["id"], {"email": "ann.b@example.com"})
        assert repo.find_one(USERS, {"email": "ann@example.com"}) is None
        assert repo.find_one(USERS, {"email": "ann.b@example.com"})["id"] == ann["id"]
        assert repo.update(USERS, bob["id"], {"email": "ann@example.com"})["email"] == "ann@example.com"

    def test_documents_without_the_field_are_not_keyed(self, repo):
        repo.insert(USERS, {"name": "Ann"})
        repo.insert(USERS, {"name": "Bob", "email": ""})
        assert repo.count(USERS) == 2

    def test_unfiltered_limit(self, repo):
        for name in "abc":
            repo.insert(PRODUCTS, {"name": name})
        assert [d["name"] for d in repo.find(PRODUCTS, limit=2)] == ["a", "b"]


class TestUnitOfWork:
    def test_commits_on_success(self, repo):
        with repo.unit_of_work():
            doc = repo.insert(USERS, {"name": "Ann"})
            repo.increment(USERS, doc["id"], {"order_count": 1})
        assert repo.get(USERS, doc["id"])["order_count"] == 1

    def test_rolls_back_on_error(self, repo):
        existing = repo.insert(USERS, {"name": "Ann", "order_count": 0})

        with pytest.raises(RuntimeError):
            with repo.unit_of_work():
                repo.increment(USERS, existing["id"], {"order_count": 5})
                repo.insert(USERS, {"name": "Bob"})
                raise RuntimeError("boom")

        assert repo.get(USERS, existing["id"])["order_count"] == 0
        assert repo.count(USERS) == 1

    def test_nested_unit_joins_outer(self, repo):
        existing = repo.insert(USERS, {"name": "Ann", "order_count": 0})

        with pytest.raises(RuntimeError):
            with repo.unit_of_work():
                with repo.unit_of_work():
                    repo.increment(USERS, existing["id"], {"order_count": 1})
                raise RuntimeError("outer fails after inner finished")

        assert repo.get(USERS, existing["id"])["order_count"] == 0

    def test_reset(self, repo):
        repo.insert(USERS, {"name": "Ann"})
        repo.reset()
        assert repo.count(USERS) == 0
