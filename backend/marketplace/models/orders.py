from __future__ import annotations

import random
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import ClassVar

from ..storage import ORDERS
from ..time_utils import parse_iso_datetime, to_storage, to_utc_z, utcnow
from .base import Record

ORDER_PENDING = "pending"
ORDER_CONFIRMED = "confirmed"
ORDER_PROCESSING = "processing"
ORDER_SHIPPED = "shipped"
ORDER_DELIVERED = "delivered"
ORDER_CANCELLED = "cancelled"
ORDER_STATUSES = (
    ORDER_PENDING,
    ORDER_CONFIRMED,
    ORDER_PROCESSING,
    ORDER_SHIPPED,
    ORDER_DELIVERED,
    ORDER_CANCELLED,
)

# Customers may cancel only before the vendor starts processing
CANCELLABLE_STATUSES = (ORDER_PENDING, ORDER_CONFIRMED)

STATUS_LABELS = {
    ORDER_PENDING: "Pending Confirmation",
    ORDER_CONFIRMED: "Confirmed",
    ORDER_PROCESSING: "Processing",
    ORDER_SHIPPED: "Shipped",
    ORDER_DELIVERED: "Delivered",
    ORDER_CANCELLED: "Cancelled",
}

PAYMENT_PENDING = "pending"
PAYMENT_PAID = "paid"
PAYMENT_STATUSES = (PAYMENT_PENDING, PAYMENT_PAID, "failed")

PAYMENT_UPI = "upi"
PAYMENT_COD = "cod"
PAYMENT_METHODS = (PAYMENT_UPI, PAYMENT_COD)


def generate_order_number() -> str:
    """ORD + last 8 digits of the epoch milliseconds + 4 random digits."""
    millis = str(int(utcnow().timestamp() * 1000))[-8:]
    return f"ORD{millis}{random.randint(0, 9999):04d}"


@dataclass
class LineItem:
    """Snapshot of a product at purchase time; never re-read from the product."""
    product_id: str
    vendor_id: str
    name: str
    price_cents: int
    quantity: int
    image: str = ""
    vendor_name: str = ""

    @property
    def line_total_cents(self) -> int:
        return self.price_cents * self.quantity


@dataclass
class CustomerInfo:
    name: str
    email: str
    phone: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    pin_code: str = ""
    payment_method: str = PAYMENT_UPI


@dataclass
class Amounts:
    subtotal_cents: int
    total_cents: int
    service_fee_cents: int = 0
    gst_cents: int = 0


@dataclass
class TrackingEvent:
    status: str
    message: str
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        return {"status": self.status, "message": self.message, "timestamp": to_utc_z(self.timestamp)}


@dataclass
class TrackingInfo:
    status: str = ORDER_PENDING
    updates: list[TrackingEvent] = field(default_factory=list)


@dataclass
class Order(Record):
    """
    Customer order.

    amounts.total_cents is fixed at creation; every reversal is computed
    from it and from the line item snapshots. tracking.updates is an
    append-only audit trail: entries are only ever added at the end.
    """
    collection: ClassVar[str] = ORDERS

    id: str = ""
    order_number: str = field(default_factory=generate_order_number)
    user_id: str = ""
    items: list[LineItem] = field(default_factory=list)
    customer_info: CustomerInfo | None = None
    amounts: Amounts | None = None
    status: str = ORDER_PENDING
    payment_status: str = PAYMENT_PENDING
    tracking: TrackingInfo = field(default_factory=TrackingInfo)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __repr__(self) -> str:
        return f"<Order id={self.id} number={self.order_number} status={self.status}>"

    @property
    def can_cancel(self) -> bool:
        return self.status in CANCELLABLE_STATUSES

    @property
    def status_label(self) -> str:
        return STATUS_LABELS.get(self.status, self.status)

    def vendor_ids(self) -> set[str]:
        return {item.vendor_id for item in self.items}

    def items_for_vendor(self, vendor_id: str) -> list[LineItem]:
        return [item for item in self.items if item.vendor_id == vendor_id]

    def revenue_by_vendor(self) -> dict[str, int]:
        totals: dict[str, int] = {}
        for item in self.items:
            totals[item.vendor_id] = totals.get(item.vendor_id, 0) + item.line_total_cents
        return totals

    def record_status(self, status: str, message: str, at: datetime | None = None) -> TrackingEvent:
        """Set the status and append the matching tracking entry."""
        event = TrackingEvent(status=status, message=message, timestamp=at or utcnow())
        self.status = status
        self.tracking.status = status
        self.tracking.updates.append(event)
        return event

    # -- documents -----------------------------------------------------------

    def to_document(self) -> dict:
        doc = asdict(self)
        doc["created_at"] = to_storage(self.created_at)
        doc["updated_at"] = to_storage(self.updated_at)
        for update in doc["tracking"]["updates"]:
            update["timestamp"] = to_storage(update["timestamp"])
        return doc

    @classmethod
    def from_document(cls, document: dict) -> "Order":
        tracking_doc = document.get("tracking") or {}
        tracking = TrackingInfo(
            status=tracking_doc.get("status", document.get("status", ORDER_PENDING)),
            updates=[
                TrackingEvent(
                    status=u["status"],
                    message=u.get("message", ""),
                    timestamp=parse_iso_datetime(u.get("timestamp")) or utcnow(),
                )
                for u in tracking_doc.get("updates", [])
            ],
        )
        customer = document.get("customer_info")
        amounts = document.get("amounts")
        return cls(
            id=document.get("id", ""),
            order_number=document.get("order_number") or generate_order_number(),
            user_id=document.get("user_id", ""),
            items=[LineItem(**item) for item in document.get("items", [])],
            customer_info=CustomerInfo(**customer) if customer else None,
            amounts=Amounts(**amounts) if amounts else None,
            status=document.get("status", ORDER_PENDING),
            payment_status=document.get("payment_status", PAYMENT_PENDING),
            tracking=tracking,
            created_at=parse_iso_datetime(document.get("created_at")) or utcnow(),
            updated_at=parse_iso_datetime(document.get("updated_at")) or utcnow(),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_number": self.order_number,
            "user_id": self.user_id,
            "items": [asdict(item) for item in self.items],
            "customer_info": asdict(self.customer_info) if self.customer_info else None,
            "amounts": asdict(self.amounts) if self.amounts else None,
            "status": self.status,
            "status_label": self.status_label,
            "can_cancel": self.can_cancel,
            "payment_status": self.payment_status,
            "tracking": {
                "status": self.tracking.status,
                "updates": [u.to_dict() for u in self.tracking.updates],
            },
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
