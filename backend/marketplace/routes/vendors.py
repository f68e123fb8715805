# Overview: Flask API routes for vendor store profiles; public directory and vendor self-service.

"""
Vendor routes.

Public:
- GET /api/vendors, GET /api/vendors/<id>

Vendor role (profile must exist; NotFound otherwise):
- /api/vendors/me/* self-service
"""
from flask import Blueprint, request, g

from ..decorators import require_auth, require_roles
from ..models import ROLE_VENDOR
from ..responses import success
from ..services import product_service, vendor_service

vendors_bp = Blueprint("vendors", __name__, url_prefix="/api/vendors")


@vendors_bp.post("/register")
@require_auth
def register_vendor():
    """Body: store_name, category (required), description, location."""
    vendor = vendor_service.register_vendor(g.current_user, request.get_json(silent=True))
    return success(
        vendor.to_dict(),
        message="Vendor registration submitted. Awaiting admin approval.",
        status_code=201,
    )


@vendors_bp.get("")
def list_vendors():
    vendors = vendor_service.list_public_vendors(category=request.args.get("category"))
    return success([v.to_dict() for v in vendors], count=len(vendors))


@vendors_bp.get("/me/profile")
@require_auth
@require_roles(ROLE_VENDOR)
def my_profile():
    vendor = vendor_service.require_vendor_for_user(g.current_user.id)
    products = vendor_service.vendor_products(vendor.id)
    return success({"vendor": vendor.to_dict(), "products": [p.to_dict() for p in products]})


@vendors_bp.put("/me")
@require_auth
@require_roles(ROLE_VENDOR)
def update_my_profile():
    vendor = vendor_service.update_vendor_profile(g.current_user, request.get_json(silent=True))
    return success(vendor.to_dict(), message="Vendor profile updated successfully")


@vendors_bp.get("/me/products")
@require_auth
@require_roles(ROLE_VENDOR)
def my_products():
    vendor = vendor_service.require_vendor_for_user(g.current_user.id)
    products = vendor_service.vendor_products(vendor.id)
    return success([p.to_dict() for p in products], count=len(products))


@vendors_bp.get("/me/stats")
@require_auth
@require_roles(ROLE_VENDOR)
def my_stats():
    return success(vendor_service.vendor_stats(g.current_user))


@vendors_bp.get("/<vendor_id>")
def get_vendor(vendor_id):
    vendor = vendor_service.get_vendor(vendor_id)
    products = vendor_service.vendor_products(vendor.id, active_only=True)
    return success({
        "vendor": vendor.to_dict(),
        "products": product_service.present_products(products),
    })
