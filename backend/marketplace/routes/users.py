# Overview: Flask API routes for the signed-in user's profile, password and orders.

from flask import Blueprint, request, g

from ..decorators import require_auth
from ..responses import success
from ..services import auth_service, order_service, user_service
from ..validation import require_json_object

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("/profile")
@require_auth
def get_profile():
    return success(g.current_user.to_dict())


@users_bp.put("/profile")
@require_auth
def update_profile():
    """Body: any of name, phone, address. Other fields are ignored."""
    user = user_service.update_profile(g.current_user, request.get_json(silent=True))
    return success(user.to_dict(), message="Profile updated successfully")


@users_bp.put("/change-password")
@require_auth
def change_password():
    data = require_json_object(request.get_json(silent=True))
    auth_service.change_password(
        g.current_user.id,
        data.get("current_password"),
        data.get("new_password"),
    )
    return success(message="Password changed successfully")


@users_bp.get("/orders")
@require_auth
def my_orders():
    orders = order_service.list_user_orders(g.current_user.id)
    return success(order_service.present_orders(orders), count=len(orders))


@users_bp.get("/stats")
@require_auth
def my_stats():
    return success(user_service.order_stats(g.current_user))
