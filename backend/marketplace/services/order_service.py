# Overview: Service-layer operations for orders; placement, status tracking and cancellation.

"""
Order Lifecycle Service

Lifecycle:
    pending -> confirmed -> processing -> shipped -> delivered
    pending | confirmed -> cancelled   (customer)
    any but delivered   -> cancelled   (vendor/admin rejection)

Invariants:
- Placing an order takes stock from every product, credits each vendor
  with its share and bumps the customer's counters, all in one unit of work.
  Any failure (missing product, short stock) leaves nothing changed.
- Cancelling, by anyone, applies the exact inverse of placement computed
  from the line item snapshots and amounts.total_cents.
- Revenue is credited to vendors when the order is placed, before vendor
  confirmation; cancellation is the only path that takes it back.
- tracking.updates is append-only. cancelled is terminal.
"""

from __future__ import annotations

from dataclasses import asdict

from flask import current_app

from .. import permissions
from ..errors import InvalidState, NotFound, ValidationError
from ..models import (
    Amounts,
    CustomerInfo,
    LineItem,
    Order,
    Product,
    User,
    Vendor,
    ORDER_CANCELLED,
    ORDER_DELIVERED,
    ORDER_PENDING,
    ORDER_STATUSES,
    PAYMENT_COD,
    PAYMENT_METHODS,
    PAYMENT_PAID,
    PAYMENT_PENDING,
    PAYMENT_UPI,
    PRODUCT_INACTIVE,
    ROLE_ADMIN,
    ROLE_VENDOR,
)
from ..storage import USERS, VENDORS, Repository, get_repository
from ..storage.concurrency import transactional
from ..validation import coerce_cents, coerce_choice, coerce_int, coerce_str
from . import vendor_service

NEWEST_FIRST = [("created_at", -1)]

PLACED_MESSAGE = "Order placed, waiting for vendor confirmation"
CUSTOMER_CANCEL_MESSAGE = "Order cancelled by customer"
VENDOR_CANCEL_MESSAGE = "Order cancelled by vendor"


# =============================================================================
# REQUEST PARSING
# =============================================================================

def _parse_items(items) -> list[tuple[str, int, int | None]]:
    if not items or not isinstance(items, list):
        raise ValidationError("Order must contain at least one item")

    parsed = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"items[{index}] must be an object")
        product_id = item.get("product_id")
        if not product_id or not isinstance(product_id, str):
            raise ValidationError(f"items[{index}].product_id is required")
        quantity = coerce_int(f"items[{index}].quantity", item.get("quantity"), minimum=1)
        price_cents = None
        if item.get("price_cents") is not None:
            price_cents = coerce_cents(f"items[{index}].price_cents", item["price_cents"])
        parsed.append((product_id, quantity, price_cents))
    return parsed


def _parse_customer(customer_info, payment_method) -> CustomerInfo:
    if not isinstance(customer_info, dict) or not customer_info.get("name") or not customer_info.get("email"):
        raise ValidationError("Customer information is required")

    method = payment_method or customer_info.get("payment_method") or PAYMENT_UPI
    return CustomerInfo(
        name=coerce_str("customer_info.name", customer_info.get("name"), allow_blank=False),
        email=coerce_str("customer_info.email", customer_info.get("email"), allow_blank=False),
        phone=coerce_str("customer_info.phone", customer_info.get("phone")),
        address=coerce_str("customer_info.address", customer_info.get("address"), max_length=1000),
        city=coerce_str("customer_info.city", customer_info.get("city")),
        state=coerce_str("customer_info.state", customer_info.get("state")),
        pin_code=coerce_str("customer_info.pin_code", customer_info.get("pin_code"), max_length=16),
        payment_method=coerce_choice("payment_method", method, PAYMENT_METHODS),
    )


def _parse_amounts(amounts) -> Amounts:
    if not isinstance(amounts, dict):
        raise ValidationError("amounts is required")
    if amounts.get("subtotal_cents") is None or amounts.get("total_cents") is None:
        raise ValidationError("amounts.subtotal_cents and amounts.total_cents are required")
    return Amounts(
        subtotal_cents=coerce_cents("amounts.subtotal_cents", amounts["subtotal_cents"]),
        total_cents=coerce_cents("amounts.total_cents", amounts["total_cents"]),
        service_fee_cents=coerce_cents("amounts.service_fee_cents", amounts.get("service_fee_cents") or 0),
        gst_cents=coerce_cents("amounts.gst_cents", amounts.get("gst_cents") or 0),
    )


# =============================================================================
# PRESENTATION
# =============================================================================

class _Lookup:
    """Per-response cache for resolving ids referenced by orders."""

    def __init__(self, repository: Repository):
        self.repository = repository
        self._products: dict[str, Product | None] = {}
        self._vendors: dict[str, Vendor | None] = {}
        self._users: dict[str, User | None] = {}

    def product(self, product_id: str) -> Product | None:
        if product_id not in self._products:
            self._products[product_id] = Product.load(self.repository, product_id)
        return self._products[product_id]

    def vendor(self, vendor_id: str) -> Vendor | None:
        if vendor_id not in self._vendors:
            self._vendors[vendor_id] = Vendor.load(self.repository, vendor_id)
        return self._vendors[vendor_id]

    def user(self, user_id: str) -> User | None:
        if user_id not in self._users:
            self._users[user_id] = User.load(self.repository, user_id)
        return self._users[user_id]


def present_order(
    order: Order,
    lookup: _Lookup | None = None,
    *,
    vendor_id: str | None = None,
    include_user: bool = False,
) -> dict:
    """
    Order dict with line items resolved for display.

    With vendor_id, items are projected to that vendor's lines and
    vendor_amount_cents is their total.
    """
    lookup = lookup or _Lookup(get_repository())
    data = order.to_dict()

    items = order.items if vendor_id is None else order.items_for_vendor(vendor_id)
    rendered = []
    for item in items:
        product = lookup.product(item.product_id)
        vendor = lookup.vendor(item.vendor_id)
        line = asdict(item)
        line["line_total_cents"] = item.line_total_cents
        line["product"] = product.summary() if product else None
        line["vendor"] = {"id": vendor.id, "store_name": vendor.store_name} if vendor else None
        rendered.append(line)
    data["items"] = rendered

    if vendor_id is not None:
        data["vendor_amount_cents"] = sum(item.line_total_cents for item in items)

    if include_user:
        user = lookup.user(order.user_id)
        data["user"] = user.summary() if user else None

    return data


def present_orders(orders: list[Order], **kwargs) -> list[dict]:
    lookup = _Lookup(get_repository())
    return [present_order(o, lookup, **kwargs) for o in orders]


# =============================================================================
# PLACEMENT
# =============================================================================

@transactional
def _place_order(
    user_id: str,
    requested: list[tuple[str, int, int | None]],
    customer: CustomerInfo,
    amounts: Amounts,
) -> Order:
    repository = get_repository()

    if User.load(repository, user_id) is None:
        raise NotFound("User not found")

    line_items = []
    for product_id, quantity, price_cents in requested:
        product = Product.load(repository, product_id)
        if product is None:
            raise NotFound(f"Product {product_id} not found")
        if product.status == PRODUCT_INACTIVE:
            raise InvalidState(f"{product.name} is not available")
        if quantity > product.stock:
            raise InvalidState(f"Insufficient stock for {product.name}")

        product.take_stock(quantity)
        product.save(repository, "stock", "sold", "status")

        vendor = Vendor.load(repository, product.vendor_id)
        line_items.append(LineItem(
            product_id=product.id,
            vendor_id=product.vendor_id,
            name=product.name,
            price_cents=product.price_cents if price_cents is None else price_cents,
            quantity=quantity,
            image=product.images[0] if product.images else "",
            vendor_name=vendor.store_name if vendor else "",
        ))

    order = Order(
        user_id=user_id,
        items=line_items,
        customer_info=customer,
        amounts=amounts,
        payment_status=PAYMENT_PENDING if customer.payment_method == PAYMENT_COD else PAYMENT_PAID,
    )
    order.record_status(ORDER_PENDING, PLACED_MESSAGE)
    order = order.insert(repository)

    repository.increment(USERS, user_id, {"order_count": 1, "total_spent_cents": amounts.total_cents})
    for vendor_id, revenue in order.revenue_by_vendor().items():
        repository.increment(VENDORS, vendor_id, {"total_revenue_cents": revenue})

    return order


def create_order(
    *,
    user_id: str,
    items,
    customer_info,
    amounts,
    payment_method: str | None = None,
) -> Order:
    """
    Place an order for user_id.

    Raises:
        ValidationError: empty items, missing customer name/email, bad amounts
        NotFound: a referenced product does not exist
        InvalidState: a product is unavailable or short on stock
    """
    requested = _parse_items(items)
    customer = _parse_customer(customer_info, payment_method)
    totals = _parse_amounts(amounts)

    order = _place_order(user_id, requested, customer, totals)
    current_app.logger.info(
        "Order %s placed by user %s (%d items, total_cents=%d)",
        order.order_number, user_id, len(order.items), totals.total_cents,
    )
    return order


# =============================================================================
# REVERSAL
# =============================================================================

def _reverse_order(repository: Repository, order: Order) -> None:
    """Undo every placement-time mutation of the order. Caller holds the unit of work."""
    for item in order.items:
        product = Product.load(repository, item.product_id)
        if product is None:
            # Deleted since purchase; nothing to restock
            continue
        product.restore_stock(item.quantity)
        product.save(repository, "stock", "sold", "status")

    for vendor_id, revenue in order.revenue_by_vendor().items():
        repository.increment(VENDORS, vendor_id, {"total_revenue_cents": -revenue})

    repository.increment(
        USERS,
        order.user_id,
        {"order_count": -1, "total_spent_cents": -order.amounts.total_cents},
    )


# =============================================================================
# QUERIES
# =============================================================================

def get_order(order_id: str) -> Order:
    order = Order.load(get_repository(), order_id)
    if order is None:
        raise NotFound("Order not found")
    return order


def get_order_for(actor: User, order_id: str) -> Order:
    """Order visible to the actor: owner, a vendor in the order, or admin."""
    order = get_order(order_id)
    vendor = vendor_service.find_vendor_for_user(actor.id)
    permissions.require("order.view", actor=actor, resource=order, vendor=vendor)
    return order


def list_orders_for(actor: User, status: str | None = None) -> list[Order]:
    """
    Orders visible to the actor.

    - admin: every order
    - vendor: orders containing the vendor's items, plus the actor's own purchases
    - user: own orders
    """
    repository = get_repository()
    query: dict = {}

    if actor.role == ROLE_ADMIN:
        pass
    elif actor.role == ROLE_VENDOR:
        vendor = vendor_service.find_vendor_for_user(actor.id)
        if vendor is not None:
            query["$or"] = [{"user_id": actor.id}, {"items.vendor_id": vendor.id}]
        else:
            query["user_id"] = actor.id
    else:
        query["user_id"] = actor.id

    if status:
        query["status"] = status

    return Order.find(repository, query, sort=NEWEST_FIRST)


def list_user_orders(user_id: str) -> list[Order]:
    return Order.find(get_repository(), {"user_id": user_id}, sort=NEWEST_FIRST)


def vendor_orders(actor: User, status: str | None = None) -> tuple[Vendor, list[Order], dict]:
    """
    Orders containing the actor's vendor items, optionally filtered by status.

    Returns (vendor, orders, stats) where stats counts every vendor order
    by status regardless of the filter.
    """
    vendor = vendor_service.require_vendor_for_user(actor.id)
    repository = get_repository()

    all_orders = Order.find(repository, {"items.vendor_id": vendor.id}, sort=NEWEST_FIRST)

    stats = {"total": len(all_orders)}
    for s in ORDER_STATUSES:
        stats[s] = sum(1 for o in all_orders if o.status == s)

    orders = [o for o in all_orders if not status or o.status == status]
    return vendor, orders, stats


def vendor_pending_orders(actor: User) -> tuple[Vendor, list[Order]]:
    vendor = vendor_service.require_vendor_for_user(actor.id)
    orders = Order.find(
        get_repository(),
        {"items.vendor_id": vendor.id, "status": ORDER_PENDING},
        sort=NEWEST_FIRST,
    )
    return vendor, orders


# =============================================================================
# TRANSITIONS
# =============================================================================

@transactional
def _apply_status_update(actor: User, order_id: str, status: str, message: str | None) -> Order:
    repository = get_repository()
    order = Order.load(repository, order_id)
    if order is None:
        raise NotFound("Order not found")

    vendor = vendor_service.find_vendor_for_user(actor.id)
    permissions.require("order.update_status", actor=actor, resource=order, vendor=vendor)

    if order.status == ORDER_CANCELLED:
        raise InvalidState("Order has already been cancelled")

    if status == ORDER_CANCELLED:
        if order.status == ORDER_DELIVERED:
            raise InvalidState("Delivered orders cannot be cancelled")
        _reverse_order(repository, order)
        order.record_status(ORDER_CANCELLED, message or VENDOR_CANCEL_MESSAGE)
    else:
        order.record_status(status, message or f"Order {status}")

    return order.save(repository, "status", "tracking")


def update_order_status(actor: User, order_id: str, status, message=None) -> Order:
    """
    Vendor/admin status change; appends to the tracking log.

    Raises:
        ValidationError: unknown status
        NotFound: order does not exist
        Forbidden: actor is neither admin nor a vendor in the order
        InvalidState: order is cancelled, or cancelling a delivered order
    """
    status = coerce_choice("status", status, ORDER_STATUSES)
    if message is not None:
        message = coerce_str("message", message, max_length=500) or None

    order = _apply_status_update(actor, order_id, status, message)
    current_app.logger.info("Order %s status -> %s by user %s", order.order_number, status, actor.id)
    return order


@transactional
def _apply_cancellation(actor: User, order_id: str) -> Order:
    repository = get_repository()
    order = Order.load(repository, order_id)
    if order is None:
        raise NotFound("Order not found")

    permissions.require("order.cancel", actor=actor, resource=order)

    if not order.can_cancel:
        raise InvalidState("Order cannot be cancelled at this stage")

    _reverse_order(repository, order)
    order.record_status(ORDER_CANCELLED, CUSTOMER_CANCEL_MESSAGE)
    return order.save(repository, "status", "tracking")


def cancel_order(actor: User, order_id: str) -> Order:
    """
    Customer cancellation; restores stock, vendor revenue and user counters.

    Raises:
        NotFound: order does not exist
        Forbidden: actor does not own the order
        InvalidState: order is past confirmed
    """
    order = _apply_cancellation(actor, order_id)
    current_app.logger.info("Order %s cancelled by customer %s", order.order_number, actor.id)
    return order
