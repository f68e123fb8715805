"""
Capability rule tests. Pure predicates; no app or storage needed.
"""

import pytest

from marketplace import permissions
from marketplace.errors import Forbidden
from marketplace.models import LineItem, Order, Product, User, Vendor

CUSTOMER = User(id="u1", role="user")
STRANGER = User(id="u2", role="user")
ADMIN = User(id="a1", role="admin")
VENDOR_OWNER = User(id="v-owner", role="vendor")
OUTSIDER_OWNER = User(id="o-owner", role="vendor")

STORE = Vendor(id="v1", user_id="v-owner")
OUTSIDER = Vendor(id="v9", user_id="o-owner")

ORDER = Order(
    id="o1",
    user_id="u1",
    items=[LineItem(product_id="p1", vendor_id="v1", name="Lamp", price_cents=100, quantity=1)],
)
PRODUCT = Product(id="p1", vendor_id="v1")


@pytest.mark.parametrize(
    "actor,vendor,allowed",
    [
        (CUSTOMER, None, True),
        (STRANGER, None, False),
        (ADMIN, None, True),
        (VENDOR_OWNER, STORE, True),
        (OUTSIDER_OWNER, OUTSIDER, False),
    ],
)
def test_order_view(actor, vendor, allowed):
    assert permissions.can("order.view", actor=actor, resource=ORDER, vendor=vendor) is allowed


@pytest.mark.parametrize(
    "actor,vendor,allowed",
    [
        (CUSTOMER, None, False),
        (ADMIN, None, True),
        (VENDOR_OWNER, STORE, True),
        (OUTSIDER_OWNER, OUTSIDER, False),
    ],
)
def test_order_update_status(actor, vendor, allowed):
    assert permissions.can("order.update_status", actor=actor, resource=ORDER, vendor=vendor) is allowed


def test_only_owner_cancels():
    assert permissions.can("order.cancel", actor=CUSTOMER, resource=ORDER)
    assert not permissions.can("order.cancel", actor=ADMIN, resource=ORDER)
    assert not permissions.can("order.cancel", actor=VENDOR_OWNER, resource=ORDER, vendor=STORE)


@pytest.mark.parametrize("capability", ["product.update", "product.delete"])
def test_product_ownership(capability):
    assert permissions.can(capability, actor=VENDOR_OWNER, resource=PRODUCT, vendor=STORE)
    assert permissions.can(capability, actor=ADMIN, resource=PRODUCT)
    assert not permissions.can(capability, actor=OUTSIDER_OWNER, resource=PRODUCT, vendor=OUTSIDER)
    # Without a vendor profile ownership can't be established
    assert not permissions.can(capability, actor=VENDOR_OWNER, resource=PRODUCT)


def test_user_delete_excludes_admin_targets():
    assert permissions.can("user.delete", actor=ADMIN, resource=CUSTOMER)
    assert not permissions.can("user.delete", actor=ADMIN, resource=User(id="a2", role="admin"))
    assert not permissions.can("user.delete", actor=CUSTOMER, resource=STRANGER)


def test_require_raises_forbidden_with_message():
    with pytest.raises(Forbidden) as exc:
        permissions.require("order.cancel", actor=STRANGER, resource=ORDER)
    assert exc.value.message == "Not authorized to cancel this order"
    assert exc.value.status_code == 403


def test_unknown_capability():
    with pytest.raises(KeyError):
        permissions.can("order.refund", actor=ADMIN)
