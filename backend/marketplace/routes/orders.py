# Overview: Flask API routes for orders; placement, tracking, cancellation and vendor queues.

"""
Order routes.

- POST /api/orders                  place an order (any authenticated user)
- GET  /api/orders                  orders visible to the caller
- GET  /api/orders/<id>             owner, vendor in the order, or admin
- PUT  /api/orders/<id>/status      vendor in the order, or admin
- PUT  /api/orders/<id>/cancel      owner, while pending or confirmed
- GET  /api/orders/vendor/all       caller's vendor lines across orders
- GET  /api/orders/vendor/pending   same, pending only
"""
from flask import Blueprint, request, g

from ..decorators import require_auth, require_roles
from ..models import ROLE_ADMIN, ROLE_VENDOR
from ..responses import success
from ..services import order_service
from ..validation import require_json_object

orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.post("")
@require_auth
def create_order():
    """
    Body:
    - items: [{product_id, quantity, price_cents?}]
    - customer_info: {name, email, phone, address, city, state, pin_code}
    - amounts: {subtotal_cents, service_fee_cents, gst_cents, total_cents}
    - payment_method: upi | cod (default upi)
    """
    data = require_json_object(request.get_json(silent=True))

    order = order_service.create_order(
        user_id=g.current_user.id,
        items=data.get("items"),
        customer_info=data.get("customer_info"),
        amounts=data.get("amounts"),
        payment_method=data.get("payment_method"),
    )
    return success(order_service.present_order(order), message="Order placed successfully", status_code=201)


@orders_bp.get("")
@require_auth
def list_orders():
    orders = order_service.list_orders_for(g.current_user, status=request.args.get("status"))
    return success(order_service.present_orders(orders), count=len(orders))


@orders_bp.get("/vendor/all")
@require_auth
@require_roles(ROLE_VENDOR)
def vendor_orders():
    """
    Query: status (optional) filters `data`.

    `stats` always counts every order holding the vendor's items, whatever
    the status filter, so dashboard tabs keep their totals while one tab
    is open.
    """
    vendor, orders, stats = order_service.vendor_orders(g.current_user, status=request.args.get("status"))
    return success(
        order_service.present_orders(orders, vendor_id=vendor.id, include_user=True),
        count=len(orders),
        stats=stats,
    )


@orders_bp.get("/vendor/pending")
@require_auth
@require_roles(ROLE_VENDOR)
def vendor_pending_orders():
    vendor, orders = order_service.vendor_pending_orders(g.current_user)
    return success(
        order_service.present_orders(orders, vendor_id=vendor.id, include_user=True),
        count=len(orders),
    )


@orders_bp.get("/<order_id>")
@require_auth
def get_order(order_id):
    order = order_service.get_order_for(g.current_user, order_id)
    return success(order_service.present_order(order, include_user=True))


@orders_bp.put("/<order_id>/status")
@require_auth
@require_roles(ROLE_VENDOR, ROLE_ADMIN)
def update_order_status(order_id):
    """Body: status (required), message (optional tracking note)."""
    data = require_json_object(request.get_json(silent=True))
    order = order_service.update_order_status(
        g.current_user, order_id, data.get("status"), data.get("message"),
    )
    return success(order_service.present_order(order), message="Order status updated successfully")


@orders_bp.put("/<order_id>/cancel")
@require_auth
def cancel_order(order_id):
    order = order_service.cancel_order(g.current_user, order_id)
    return success(order_service.present_order(order), message="Order cancelled successfully")
