# Overview: Service-layer operations for the admin dashboard.

from __future__ import annotations

from ..models import (
    Order,
    ORDER_CANCELLED,
    PAYMENT_PAID,
    ROLE_USER,
    VENDOR_ACTIVE,
    VENDOR_PENDING,
)
from ..storage import ORDERS, PRODUCTS, USERS, VENDORS, get_repository

RECENT_ORDER_LIMIT = 10


def dashboard_stats() -> tuple[dict, list[Order]]:
    """
    Marketplace totals and the most recent orders.

    total_revenue_cents counts paid orders that were not cancelled; the
    recent orders list is newest first.
    """
    repository = get_repository()

    revenue_orders = repository.find(
        ORDERS, {"payment_status": PAYMENT_PAID, "status": {"$ne": ORDER_CANCELLED}},
    )
    stats = {
        "total_users": repository.count(USERS, {"role": ROLE_USER}),
        "total_vendors": repository.count(VENDORS),
        "total_products": repository.count(PRODUCTS),
        "total_orders": repository.count(ORDERS),
        "pending_vendors": repository.count(VENDORS, {"status": VENDOR_PENDING}),
        "active_vendors": repository.count(VENDORS, {"status": VENDOR_ACTIVE}),
        "total_revenue_cents": sum(doc["amounts"]["total_cents"] for doc in revenue_orders),
    }

    recent = Order.find(repository, sort=[("created_at", -1)], limit=RECENT_ORDER_LIMIT)
    return stats, recent


def list_orders(status: str | None = None, payment_status: str | None = None) -> list[Order]:
    query = {}
    if status:
        query["status"] = status
    if payment_status:
        query["payment_status"] = payment_status
    return Order.find(get_repository(), query, sort=[("created_at", -1)])
