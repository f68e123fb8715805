# Overview: Health endpoint reporting the active storage backend.

from flask import Blueprint, current_app

from ..responses import success
from ..storage import get_repository
from ..time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__, url_prefix="/api")


@system_bp.get("/health")
def health():
    return success(
        {
            "storage": get_repository().name,
            "timestamp": to_utc_z(utcnow()),
            "testing": bool(current_app.config.get("TESTING")),
        },
        message="Marketplace API is running",
    )
