# Overview: Service-layer operations for vendors; store profiles, stats and admin approval.

"""
Vendor Service

A vendor is a store profile owned by exactly one user. Registration creates
the profile in `pending`; an admin approval activates it and promotes the
owner to the vendor role, which unlocks the vendor routes.

Approval lifecycle:
    pending -> active   (approved_at/approved_by stamped, owner promoted)
    any     -> inactive (approval stamp cleared)
"""

from __future__ import annotations

from flask import current_app

from ..errors import NotFound, ValidationError
from ..models import (
    Product,
    User,
    Vendor,
    APPROVAL_STATUSES,
    CATEGORIES,
    PRODUCT_ACTIVE,
    ROLE_ADMIN,
    ROLE_VENDOR,
    VENDOR_ACTIVE,
    VENDOR_PENDING,
)
from ..storage import DuplicateKeyError, get_repository
from ..storage.concurrency import transactional
from ..time_utils import utcnow
from ..validation import FieldPolicy, coerce_choice, coerce_str

VENDOR_POLICY = FieldPolicy(
    writable_fields=frozenset({"store_name", "category", "description", "location"}),
    required_on_create=frozenset({"store_name", "category"}),
)

NEWEST_FIRST = [("created_at", -1)]


def _clean_vendor_fields(payload: dict, *, partial: bool) -> dict:
    data = VENDOR_POLICY.clean(payload, partial=partial)
    cleaned = {}
    if "store_name" in data:
        cleaned["store_name"] = coerce_str("store_name", data["store_name"], max_length=120, allow_blank=False)
    if "category" in data:
        cleaned["category"] = coerce_choice("category", data["category"], CATEGORIES)
    if "description" in data:
        cleaned["description"] = coerce_str("description", data["description"], max_length=2000)
    if "location" in data:
        cleaned["location"] = coerce_str("location", data["location"])
    return cleaned


def find_vendor_for_user(user_id: str) -> Vendor | None:
    return Vendor.find_one(get_repository(), {"user_id": user_id})


def require_vendor_for_user(user_id: str) -> Vendor:
    vendor = find_vendor_for_user(user_id)
    if vendor is None:
        raise NotFound("Vendor profile not found")
    return vendor


def get_vendor(vendor_id: str) -> Vendor:
    vendor = Vendor.load(get_repository(), vendor_id)
    if vendor is None:
        raise NotFound("Vendor not found")
    return vendor


@transactional
def _insert_vendor(vendor: Vendor) -> Vendor:
    if find_vendor_for_user(vendor.user_id) is not None:
        raise ValidationError("You already have a vendor account")
    try:
        return vendor.insert(get_repository())
    except DuplicateKeyError:
        raise ValidationError("You already have a vendor account") from None


def register_vendor(user: User, payload: dict) -> Vendor:
    """
    Create the caller's vendor profile in pending state.

    Raises ValidationError when required fields are missing or the user
    already has a profile.
    """
    data = _clean_vendor_fields(payload, partial=False)
    vendor = _insert_vendor(Vendor(user_id=user.id, status=VENDOR_PENDING, **data))
    current_app.logger.info("Vendor %s registered by user %s (pending approval)", vendor.id, user.id)
    return vendor


def list_public_vendors(category: str | None = None) -> list[Vendor]:
    query = {"status": VENDOR_ACTIVE}
    if category:
        query["category"] = category
    return Vendor.find(get_repository(), query, sort=[("rating", -1), ("created_at", -1)])


def list_vendors(status: str | None = None, category: str | None = None) -> list[Vendor]:
    """Admin listing across every status."""
    query = {}
    if status:
        query["status"] = status
    if category:
        query["category"] = category
    return Vendor.find(get_repository(), query, sort=NEWEST_FIRST)


def vendor_products(vendor_id: str, *, active_only: bool = False) -> list[Product]:
    query = {"vendor_id": vendor_id}
    if active_only:
        query["status"] = PRODUCT_ACTIVE
    return Product.find(get_repository(), query, sort=NEWEST_FIRST)


def update_vendor_profile(user: User, payload: dict) -> Vendor:
    vendor = require_vendor_for_user(user.id)
    changes = _clean_vendor_fields(payload, partial=True)
    if not changes:
        return vendor

    for name, value in changes.items():
        setattr(vendor, name, value)
    return vendor.save(get_repository(), *changes)


def vendor_stats(user: User) -> dict:
    vendor = require_vendor_for_user(user.id)
    products = vendor_products(vendor.id)
    return {
        "total_products": vendor.total_products,
        "total_revenue_cents": vendor.total_revenue_cents,
        "total_stock": sum(p.stock for p in products),
        "total_sold": sum(p.sold for p in products),
        "rating": vendor.rating,
        "status": vendor.status,
    }


@transactional
def _apply_approval(vendor_id: str, status: str, admin_id: str) -> Vendor:
    repository = get_repository()
    vendor = Vendor.load(repository, vendor_id)
    if vendor is None:
        raise NotFound("Vendor not found")

    vendor.status = status
    if status == VENDOR_ACTIVE:
        vendor.approved_at = utcnow()
        vendor.approved_by = admin_id

        owner = User.load(repository, vendor.user_id)
        # Admins keep their role when they own a store
        if owner is not None and owner.role != ROLE_ADMIN and owner.role != ROLE_VENDOR:
            owner.role = ROLE_VENDOR
            owner.save(repository, "role")
    else:
        vendor.approved_at = None
        vendor.approved_by = None

    return vendor.save(repository, "status", "approved_at", "approved_by")


def approve_vendor(admin: User, vendor_id: str, status) -> Vendor:
    """
    Admin decision on a vendor profile.

    Raises:
        ValidationError: status is not active or inactive
        NotFound: vendor does not exist
    """
    status = coerce_choice("status", status, APPROVAL_STATUSES)
    vendor = _apply_approval(vendor_id, status, admin.id)

    if status == VENDOR_ACTIVE:
        current_app.logger.info("Vendor %s approved by admin %s", vendor.id, admin.id)
    else:
        current_app.logger.info("Vendor %s deactivated by admin %s", vendor.id, admin.id)
    return vendor
