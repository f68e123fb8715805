# Overview: Flask API routes for authentication; signup, login and the current session.

"""
Authentication routes.

Tokens are stateless signed credentials (see services.token_service);
the client sends them as `Authorization: Bearer <token>`.
"""
from flask import Blueprint, request, g

from ..decorators import require_auth
from ..responses import success
from ..services import auth_service, token_service, vendor_service
from ..validation import require_json_object

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/signup")
def signup():
    """
    Register a customer account.

    Body: name, email, password (required), phone, address (optional).
    The role is always "user"; vendors are promoted through approval.
    """
    data = require_json_object(request.get_json(silent=True))

    user = auth_service.create_user(
        name=data.get("name"),
        email=data.get("email"),
        password=data.get("password"),
        phone=data.get("phone") or "",
        address=data.get("address"),
    )
    token = token_service.issue_token(user.id)
    return success(
        {"user": user.to_dict(), "token": token},
        message="User registered successfully",
        status_code=201,
    )


@auth_bp.post("/login")
def login():
    data = require_json_object(request.get_json(silent=True))

    user, vendor = auth_service.authenticate(
        data.get("email"),
        data.get("password"),
        role=data.get("role"),
    )
    token = token_service.issue_token(user.id)
    return success(
        {
            "user": user.to_dict(),
            "vendor": vendor.to_dict() if vendor else None,
            "token": token,
        },
        message="Login successful",
    )


@auth_bp.get("/me")
@require_auth
def me():
    user = g.current_user
    vendor = vendor_service.find_vendor_for_user(user.id)
    return success({"user": user.to_dict(), "vendor": vendor.to_dict() if vendor else None})


@auth_bp.post("/logout")
@require_auth
def logout():
    # Stateless tokens: the client discards its copy
    return success(message="Logged out successfully")
