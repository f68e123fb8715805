from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import ClassVar, Optional

from ..storage import PRODUCTS
from ..time_utils import utcnow, to_utc_z
from .base import Record

CATEGORIES = ("electronics", "fashion", "home", "books", "sports", "toys", "other")

PRODUCT_ACTIVE = "active"
PRODUCT_INACTIVE = "inactive"
PRODUCT_OUT_OF_STOCK = "out_of_stock"
PRODUCT_STATUSES = (PRODUCT_ACTIVE, PRODUCT_INACTIVE, PRODUCT_OUT_OF_STOCK)


@dataclass
class Product(Record):
    """
    Product listing owned by one vendor.

    Invariant: stock >= 0. Status follows stock: reaching 0 marks the
    product out_of_stock, and positive stock on an out_of_stock product
    returns it to active (see sync_stock_status).
    """
    collection: ClassVar[str] = PRODUCTS

    id: str = ""
    vendor_id: str = ""
    name: str = ""
    description: str = ""
    price_cents: int = 0
    original_price_cents: Optional[int] = None
    discount: int = 0
    category: str = "other"
    images: list = field(default_factory=list)
    stock: int = 0
    sold: int = 0
    rating: float = 0.0
    review_count: int = 0
    status: str = PRODUCT_ACTIVE
    specifications: dict = field(default_factory=dict)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        if self.original_price_cents is None:
            self.original_price_cents = self.price_cents

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} stock={self.stock} status={self.status}>"

    def sync_stock_status(self) -> None:
        if self.stock == 0:
            self.status = PRODUCT_OUT_OF_STOCK
        elif self.stock > 0 and self.status == PRODUCT_OUT_OF_STOCK:
            self.status = PRODUCT_ACTIVE

    def take_stock(self, quantity: int) -> None:
        """Sell quantity units. Caller has verified availability."""
        if quantity > self.stock:
            raise ValueError("quantity exceeds stock")
        self.stock -= quantity
        self.sold += quantity
        if self.stock == 0:
            self.status = PRODUCT_OUT_OF_STOCK

    def restore_stock(self, quantity: int) -> None:
        """Exact inverse of take_stock."""
        self.stock += quantity
        self.sold -= quantity
        if self.stock > 0 and self.status == PRODUCT_OUT_OF_STOCK:
            self.status = PRODUCT_ACTIVE

    def summary(self) -> dict:
        return {"id": self.id, "name": self.name, "images": list(self.images), "category": self.category}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "vendor_id": self.vendor_id,
            "name": self.name,
            "description": self.description,
            "price_cents": self.price_cents,
            "original_price_cents": self.original_price_cents,
            "discount": self.discount,
            "category": self.category,
            "images": list(self.images),
            "stock": self.stock,
            "sold": self.sold,
            "rating": self.rating,
            "review_count": self.review_count,
            "status": self.status,
            "specifications": dict(self.specifications),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
