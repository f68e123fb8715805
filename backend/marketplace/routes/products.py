# Overview: Flask API routes for the product catalog and vendor listings.

"""
Product routes.

Reads are public and return active products only. Writes require the
vendor or admin role; ownership is checked by the product.update and
product.delete capabilities.
"""
from flask import Blueprint, request, g

from ..decorators import require_auth, require_roles
from ..models import ROLE_ADMIN, ROLE_VENDOR
from ..responses import success
from ..services import product_service

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
def list_products():
    """
    Query params:
    - category: str (optional, "all" disables the filter)
    - search: str (optional) - substring of name or description
    - min_price_cents, max_price_cents: int (optional)
    - sort: newest | price_asc | price_desc | rating (default newest)
    """
    products = product_service.list_products(
        category=request.args.get("category"),
        search=request.args.get("search"),
        min_price_cents=request.args.get("min_price_cents"),
        max_price_cents=request.args.get("max_price_cents"),
        sort=request.args.get("sort"),
    )
    return success(product_service.present_products(products), count=len(products))


@products_bp.get("/categories/list")
def list_categories():
    return success(product_service.list_categories())


@products_bp.get("/<product_id>")
def get_product(product_id):
    product = product_service.get_product(product_id)
    return success(product_service.present_product(product))


@products_bp.post("")
@require_auth
@require_roles(ROLE_VENDOR, ROLE_ADMIN)
def create_product():
    product = product_service.create_product(g.current_user, request.get_json(silent=True))
    return success(product.to_dict(), message="Product created successfully", status_code=201)


@products_bp.put("/<product_id>")
@require_auth
@require_roles(ROLE_VENDOR, ROLE_ADMIN)
def update_product(product_id):
    product = product_service.update_product(g.current_user, product_id, request.get_json(silent=True))
    return success(product.to_dict(), message="Product updated successfully")


@products_bp.delete("/<product_id>")
@require_auth
@require_roles(ROLE_VENDOR, ROLE_ADMIN)
def delete_product(product_id):
    product_service.delete_product(g.current_user, product_id)
    return success(message="Product deleted successfully")
