# Overview: Service-layer operations for user accounts; profile edits, order stats and admin account management.

from __future__ import annotations

from flask import current_app

from .. import permissions
from ..errors import NotFound
from ..models import (
    Order,
    User,
    ORDER_CANCELLED,
    ORDER_CONFIRMED,
    ORDER_DELIVERED,
    ORDER_PENDING,
    USER_STATUSES,
)
from ..storage import get_repository
from ..validation import FieldPolicy, coerce_choice, coerce_str, coerce_str_mapping

PROFILE_POLICY = FieldPolicy(writable_fields=frozenset({"name", "phone", "address"}))


def get_user(user_id: str) -> User:
    user = User.load(get_repository(), user_id)
    if user is None:
        raise NotFound("User not found")
    return user


def update_profile(user: User, payload: dict) -> User:
    data = PROFILE_POLICY.clean(payload, partial=True)
    changes = {}
    if "name" in data:
        changes["name"] = coerce_str("name", data["name"], max_length=120, allow_blank=False)
    if "phone" in data:
        changes["phone"] = coerce_str("phone", data["phone"], max_length=32)
    if "address" in data:
        changes["address"] = coerce_str_mapping("address", data["address"])

    if not changes:
        return get_user(user.id)

    for name, value in changes.items():
        setattr(user, name, value)
    saved = user.save(get_repository(), *changes)
    current_app.logger.info("User %s updated profile fields %s", user.id, sorted(changes))
    return saved


def order_stats(user: User) -> dict:
    orders = Order.find(get_repository(), {"user_id": user.id})
    return {
        "total_orders": len(orders),
        "total_spent_cents": user.total_spent_cents,
        "pending_orders": sum(1 for o in orders if o.status in (ORDER_PENDING, ORDER_CONFIRMED)),
        "delivered_orders": sum(1 for o in orders if o.status == ORDER_DELIVERED),
        "cancelled_orders": sum(1 for o in orders if o.status == ORDER_CANCELLED),
    }


def list_users(role: str | None = None, status: str | None = None, search: str | None = None) -> list[User]:
    query: dict = {}
    if role:
        query["role"] = role
    if status:
        query["status"] = status
    if search and search.strip():
        term = search.strip()
        query["$or"] = [{"name": {"$icontains": term}}, {"email": {"$icontains": term}}]
    return User.find(get_repository(), query, sort=[("created_at", -1)])


def set_user_status(admin: User, user_id: str, status) -> User:
    status = coerce_choice("status", status, USER_STATUSES)
    user = get_user(user_id)
    user.status = status
    saved = user.save(get_repository(), "status")
    current_app.logger.info("User %s status set to %s by admin %s", user_id, status, admin.id)
    return saved


def delete_user(admin: User, user_id: str) -> None:
    """
    Remove an account. Admin accounts cannot be deleted.

    Orders placed by the user are kept; they reference the user by id only.
    """
    user = get_user(user_id)
    permissions.require("user.delete", actor=admin, resource=user)

    get_repository().delete(User.collection, user.id)
    current_app.logger.info("User %s deleted by admin %s", user_id, admin.id)
