from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import ClassVar

from ..storage import USERS
from ..time_utils import utcnow, to_utc_z
from .base import Record

ROLE_USER = "user"
ROLE_VENDOR = "vendor"
ROLE_ADMIN = "admin"
USER_ROLES = (ROLE_USER, ROLE_VENDOR, ROLE_ADMIN)

USER_ACTIVE = "active"
USER_STATUSES = (USER_ACTIVE, "inactive", "suspended")


@dataclass
class User(Record):
    """
    Marketplace account.

    order_count and total_spent_cents are running counters maintained by
    order placement and cancellation; they are never recomputed.
    """
    collection: ClassVar[str] = USERS

    id: str = ""
    name: str = ""
    email: str = ""
    password_hash: str = ""
    phone: str = ""
    role: str = ROLE_USER
    address: dict = field(default_factory=dict)
    status: str = USER_ACTIVE
    order_count: int = 0
    total_spent_cents: int = 0
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def is_active(self) -> bool:
        return self.status == USER_ACTIVE

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role}>"

    def summary(self) -> dict:
        return {"id": self.id, "name": self.name, "email": self.email, "phone": self.phone}

    def to_dict(self) -> dict:
        # password_hash is never serialized
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "role": self.role,
            "address": self.address,
            "status": self.status,
            "order_count": self.order_count,
            "total_spent_cents": self.total_spent_cents,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
