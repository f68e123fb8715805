# Overview: Service-layer operations for products; catalog queries and vendor-owned listings.

"""
Product Service

Products belong to one vendor. Public catalog reads only ever return
`active` products; vendors and admins manage listings through the
product.update / product.delete capabilities.

Invariants:
- stock >= 0 (validated on every write)
- stock reaching 0 flips status to out_of_stock; positive stock on an
  out_of_stock product flips it back to active
- a status sent on create or update is reconciled with stock by the same rule
- vendor.total_products moves with product create/delete in the same unit
  of work
"""

from __future__ import annotations

from flask import current_app

from .. import permissions
from ..errors import Forbidden, NotFound, ValidationError
from ..models import (
    Product,
    User,
    Vendor,
    CATEGORIES,
    PRODUCT_ACTIVE,
    PRODUCT_STATUSES,
    ROLE_ADMIN,
)
from ..storage import VENDORS, get_repository
from ..storage.concurrency import transactional
from ..validation import (
    FieldPolicy,
    coerce_cents,
    coerce_choice,
    coerce_int,
    coerce_list_of_str,
    coerce_str,
    coerce_str_mapping,
)
from . import vendor_service

PRODUCT_POLICY = FieldPolicy(
    writable_fields=frozenset({
        "name", "description", "price_cents", "original_price_cents", "discount",
        "category", "images", "stock", "specifications", "status",
    }),
    required_on_create=frozenset({"name", "price_cents", "category"}),
)

SORTS = {
    "newest": [("created_at", -1)],
    "price_asc": [("price_cents", 1), ("created_at", -1)],
    "price_desc": [("price_cents", -1), ("created_at", -1)],
    "rating": [("rating", -1), ("created_at", -1)],
}


def _clean_product_fields(payload: dict, *, partial: bool) -> dict:
    data = PRODUCT_POLICY.clean(payload, partial=partial)
    cleaned = {}
    if "name" in data:
        cleaned["name"] = coerce_str("name", data["name"], max_length=200, allow_blank=False)
    if "description" in data:
        cleaned["description"] = coerce_str("description", data["description"], max_length=5000)
    if "price_cents" in data:
        cleaned["price_cents"] = coerce_cents("price_cents", data["price_cents"])
    if data.get("original_price_cents") is not None:
        cleaned["original_price_cents"] = coerce_cents("original_price_cents", data["original_price_cents"])
    if "discount" in data:
        cleaned["discount"] = coerce_int("discount", data["discount"], minimum=0, maximum=100)
    if "category" in data:
        cleaned["category"] = coerce_choice("category", data["category"], CATEGORIES)
    if "images" in data:
        cleaned["images"] = coerce_list_of_str("images", data["images"])
    if "stock" in data:
        cleaned["stock"] = coerce_int("stock", data["stock"], minimum=0)
    if "specifications" in data:
        cleaned["specifications"] = coerce_str_mapping("specifications", data["specifications"])
    if "status" in data:
        cleaned["status"] = coerce_choice("status", data["status"], PRODUCT_STATUSES)
    return cleaned


def _vendor_card(vendor: Vendor | None) -> dict | None:
    if vendor is None:
        return None
    return {
        "id": vendor.id,
        "store_name": vendor.store_name,
        "rating": vendor.rating,
        "location": vendor.location,
    }


def present_product(product: Product) -> dict:
    data = product.to_dict()
    vendor = Vendor.load(get_repository(), product.vendor_id)
    data["vendor"] = _vendor_card(vendor)
    return data


def present_products(products: list[Product]) -> list[dict]:
    repository = get_repository()
    vendors: dict[str, Vendor | None] = {}
    rendered = []
    for product in products:
        if product.vendor_id not in vendors:
            vendors[product.vendor_id] = Vendor.load(repository, product.vendor_id)
        rendered.append({**product.to_dict(), "vendor": _vendor_card(vendors[product.vendor_id])})
    return rendered


def list_products(
    *,
    category: str | None = None,
    search: str | None = None,
    min_price_cents=None,
    max_price_cents=None,
    sort: str | None = None,
) -> list[Product]:
    """
    Public catalog: active products only.

    category "all" means no category filter; search matches name or
    description case-insensitively.
    """
    query: dict = {"status": PRODUCT_ACTIVE}

    if category and category != "all":
        query["category"] = category

    if search:
        term = search.strip()
        if term:
            query["$or"] = [
                {"name": {"$icontains": term}},
                {"description": {"$icontains": term}},
            ]

    price: dict = {}
    if min_price_cents not in (None, ""):
        price["$gte"] = coerce_cents("min_price_cents", min_price_cents)
    if max_price_cents not in (None, ""):
        price["$lte"] = coerce_cents("max_price_cents", max_price_cents)
    if price:
        query["price_cents"] = price

    sort_key = sort or "newest"
    if sort_key not in SORTS:
        raise ValidationError(f"sort must be one of: {', '.join(SORTS)}")

    return Product.find(get_repository(), query, sort=SORTS[sort_key])


def list_all_products(status: str | None = None, category: str | None = None) -> list[Product]:
    """Admin listing across every status."""
    query = {}
    if status:
        query["status"] = status
    if category:
        query["category"] = category
    return Product.find(get_repository(), query, sort=SORTS["newest"])


def get_product(product_id: str) -> Product:
    product = Product.load(get_repository(), product_id)
    if product is None:
        raise NotFound("Product not found")
    return product


def _owning_vendor(actor: User, payload: dict) -> Vendor:
    if actor.role == ROLE_ADMIN and payload.get("vendor_id"):
        vendor = vendor_service.get_vendor(payload["vendor_id"])
    else:
        vendor = vendor_service.require_vendor_for_user(actor.id)

    if not vendor.is_active:
        raise Forbidden("Vendor account is not active")
    return vendor


@transactional
def _insert_product(product: Product) -> Product:
    repository = get_repository()
    product = product.insert(repository)
    repository.increment(VENDORS, product.vendor_id, {"total_products": 1})
    return product


def create_product(actor: User, payload: dict) -> Product:
    """
    Create a listing owned by the caller's vendor profile (admins may name
    vendor_id).

    Raises:
        ValidationError: name, price_cents or category missing or invalid
        NotFound: no vendor profile
        Forbidden: vendor profile not active
    """
    payload = payload or {}
    data = _clean_product_fields(payload, partial=False)
    vendor = _owning_vendor(actor, payload)

    product = Product(vendor_id=vendor.id, **data)
    product.sync_stock_status()

    product = _insert_product(product)
    current_app.logger.info("Product %s created for vendor %s", product.id, vendor.id)
    return product


@transactional
def update_product(actor: User, product_id: str, payload: dict) -> Product:
    """
    Apply whitelisted field changes to a listing.

    Runs as one unit of work, so a concurrent sale that empties the stock
    cannot be overwritten with the status read here.
    """
    repository = get_repository()
    product = get_product(product_id)
    vendor = vendor_service.find_vendor_for_user(actor.id)
    permissions.require("product.update", actor=actor, resource=product, vendor=vendor)

    changes = _clean_product_fields(payload, partial=True)
    if not changes:
        return product

    for name, value in changes.items():
        setattr(product, name, value)
    # A requested status never contradicts stock
    product.sync_stock_status()

    return product.save(repository, *changes, "status")


@transactional
def _remove_product(product: Product) -> None:
    repository = get_repository()
    repository.delete(Product.collection, product.id)

    vendor = Vendor.load(repository, product.vendor_id)
    if vendor is not None:
        vendor.total_products = max(0, vendor.total_products - 1)
        vendor.save(repository, "total_products")


def delete_product(actor: User, product_id: str) -> None:
    product = get_product(product_id)
    vendor = vendor_service.find_vendor_for_user(actor.id)
    permissions.require("product.delete", actor=actor, resource=product, vendor=vendor)

    _remove_product(product)
    current_app.logger.info("Product %s deleted by user %s", product.id, actor.id)


def list_categories() -> list[str]:
    return list(CATEGORIES)
