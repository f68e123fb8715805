# Overview: Declarative capability rules, one predicate per protected operation.

"""
Marketplace permissions.

Each operation that depends on who owns what is a named capability backed
by a predicate over an AccessContext {actor, resource, vendor}, where
`vendor` is the actor's own vendor profile (or None). Route-level role
filtering is separate (decorators.require_roles); these rules decide
ownership questions once the resource is loaded.

Usage:
    permissions.require("order.cancel", actor=user, resource=order)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from .errors import Forbidden
from .models import Order, Product, User, Vendor, ROLE_ADMIN


@dataclass(frozen=True)
class AccessContext:
    actor: User
    resource: Any = None
    vendor: Vendor | None = None


Rule = Callable[[AccessContext], bool]


def is_admin(ctx: AccessContext) -> bool:
    return ctx.actor.role == ROLE_ADMIN


def owns_order(ctx: AccessContext) -> bool:
    return isinstance(ctx.resource, Order) and ctx.resource.user_id == ctx.actor.id


def vendor_in_order(ctx: AccessContext) -> bool:
    if ctx.vendor is None or not isinstance(ctx.resource, Order):
        return False
    return ctx.vendor.id in ctx.resource.vendor_ids()


def owns_product(ctx: AccessContext) -> bool:
    if ctx.vendor is None or not isinstance(ctx.resource, Product):
        return False
    return ctx.resource.vendor_id == ctx.vendor.id


def target_not_admin(ctx: AccessContext) -> bool:
    return isinstance(ctx.resource, User) and ctx.resource.role != ROLE_ADMIN


def any_of(*rules: Rule) -> Rule:
    def rule(ctx: AccessContext) -> bool:
        return any(r(ctx) for r in rules)
    return rule


def all_of(*rules: Rule) -> Rule:
    def rule(ctx: AccessContext) -> bool:
        return all(r(ctx) for r in rules)
    return rule


CAPABILITIES: dict[str, Rule] = {
    "order.view": any_of(is_admin, owns_order, vendor_in_order),
    "order.update_status": any_of(is_admin, vendor_in_order),
    "order.cancel": owns_order,
    "product.update": any_of(is_admin, owns_product),
    "product.delete": any_of(is_admin, owns_product),
    "user.delete": all_of(is_admin, target_not_admin),
}

DENIAL_MESSAGES = {
    "order.view": "Not authorized to view this order",
    "order.update_status": "Not authorized to update this order",
    "order.cancel": "Not authorized to cancel this order",
    "product.update": "Not authorized to update this product",
    "product.delete": "Not authorized to delete this product",
    "user.delete": "Cannot delete admin accounts",
}


def can(capability: str, *, actor: User, resource: Any = None, vendor: Vendor | None = None) -> bool:
    try:
        rule = CAPABILITIES[capability]
    except KeyError:
        raise KeyError(f"Unknown capability {capability}")
    return rule(AccessContext(actor=actor, resource=resource, vendor=vendor))


def require(capability: str, *, actor: User, resource: Any = None, vendor: Vendor | None = None) -> None:
    """Raise Forbidden unless the actor holds the capability on the resource."""
    if not can(capability, actor=actor, resource=resource, vendor=vendor):
        raise Forbidden(DENIAL_MESSAGES.get(capability))
