# Overview: Flask API routes for marketplace administration.

"""
Admin routes. Every endpoint requires the admin role.
"""
from flask import Blueprint, request, g

from ..decorators import require_auth, require_roles
from ..models import ROLE_ADMIN
from ..responses import success
from ..services import admin_service, order_service, product_service, user_service, vendor_service
from ..validation import require_json_object

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@require_auth
@require_roles(ROLE_ADMIN)
def _check_admin():
    return None


@admin_bp.before_request
def _admin_only():
    # CORS preflight carries no credentials
    if request.method == "OPTIONS":
        return None
    return _check_admin()


@admin_bp.get("/dashboard")
def dashboard():
    stats, recent = admin_service.dashboard_stats()
    return success({
        "stats": stats,
        "recent_orders": order_service.present_orders(recent, include_user=True),
    })


@admin_bp.get("/users")
def list_users():
    users = user_service.list_users(
        role=request.args.get("role"),
        status=request.args.get("status"),
        search=request.args.get("search"),
    )
    return success([u.to_dict() for u in users], count=len(users))


@admin_bp.put("/users/<user_id>/status")
def set_user_status(user_id):
    data = require_json_object(request.get_json(silent=True))
    user = user_service.set_user_status(g.current_user, user_id, data.get("status"))
    return success(user.to_dict(), message="User status updated successfully")


@admin_bp.delete("/users/<user_id>")
def delete_user(user_id):
    user_service.delete_user(g.current_user, user_id)
    return success(message="User deleted successfully")


@admin_bp.get("/vendors")
def list_vendors():
    vendors = vendor_service.list_vendors(
        status=request.args.get("status"),
        category=request.args.get("category"),
    )
    return success([v.to_dict() for v in vendors], count=len(vendors))


@admin_bp.put("/vendors/<vendor_id>/approve")
def approve_vendor(vendor_id):
    """Body: status = active | inactive."""
    data = require_json_object(request.get_json(silent=True))
    vendor = vendor_service.approve_vendor(g.current_user, vendor_id, data.get("status"))
    return success(vendor.to_dict(), message=f"Vendor {vendor.status}")


@admin_bp.get("/products")
def list_products():
    products = product_service.list_all_products(
        status=request.args.get("status"),
        category=request.args.get("category"),
    )
    return success(product_service.present_products(products), count=len(products))


@admin_bp.get("/orders")
def list_orders():
    orders = admin_service.list_orders(
        status=request.args.get("status"),
        payment_status=request.args.get("payment_status"),
    )
    return success(order_service.present_orders(orders, include_user=True), count=len(orders))
