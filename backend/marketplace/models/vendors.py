from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import ClassVar, Optional

from ..storage import VENDORS
from ..time_utils import utcnow, to_utc_z
from .base import Record

VENDOR_PENDING = "pending"
VENDOR_ACTIVE = "active"
VENDOR_INACTIVE = "inactive"
VENDOR_STATUSES = (VENDOR_PENDING, VENDOR_ACTIVE, VENDOR_INACTIVE, "suspended")

# Statuses an admin may set through the approval endpoint
APPROVAL_STATUSES = (VENDOR_ACTIVE, VENDOR_INACTIVE)


@dataclass
class Vendor(Record):
    """
    Store profile owned by exactly one user (one profile per user).

    total_products and total_revenue_cents are running sums maintained
    alongside product and order mutations.
    """
    collection: ClassVar[str] = VENDORS
    datetime_fields: ClassVar[tuple[str, ...]] = ("created_at", "updated_at", "approved_at")

    id: str = ""
    user_id: str = ""
    store_name: str = ""
    category: str = ""
    description: str = ""
    location: str = ""
    rating: float = 0.0
    total_products: int = 0
    total_revenue_cents: int = 0
    status: str = VENDOR_PENDING
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def is_active(self) -> bool:
        return self.status == VENDOR_ACTIVE

    def __repr__(self) -> str:
        return f"<Vendor id={self.id} store_name={self.store_name!r} status={self.status}>"

    def summary(self) -> dict:
        return {
            "id": self.id,
            "store_name": self.store_name,
            "rating": self.rating,
            "location": self.location,
            "category": self.category,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "store_name": self.store_name,
            "category": self.category,
            "description": self.description,
            "location": self.location,
            "rating": self.rating,
            "total_products": self.total_products,
            "total_revenue_cents": self.total_revenue_cents,
            "status": self.status,
            "approved_at": to_utc_z(self.approved_at),
            "approved_by": self.approved_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
