from .base import Record
from .users import User, ROLE_USER, ROLE_VENDOR, ROLE_ADMIN, USER_ROLES, USER_ACTIVE, USER_STATUSES
from .vendors import (
    Vendor, VENDOR_PENDING, VENDOR_ACTIVE, VENDOR_INACTIVE, VENDOR_STATUSES, APPROVAL_STATUSES,
)
from .products import (
    Product, CATEGORIES, PRODUCT_ACTIVE, PRODUCT_INACTIVE, PRODUCT_OUT_OF_STOCK, PRODUCT_STATUSES,
)
from .orders import (
    Order, LineItem, CustomerInfo, Amounts, TrackingEvent, TrackingInfo,
    ORDER_PENDING, ORDER_CONFIRMED, ORDER_PROCESSING, ORDER_SHIPPED, ORDER_DELIVERED, ORDER_CANCELLED,
    ORDER_STATUSES, CANCELLABLE_STATUSES, STATUS_LABELS,
    PAYMENT_PENDING, PAYMENT_PAID, PAYMENT_STATUSES, PAYMENT_UPI, PAYMENT_COD, PAYMENT_METHODS,
)

__all__ = [
    'Record',
    'User', 'ROLE_USER', 'ROLE_VENDOR', 'ROLE_ADMIN', 'USER_ROLES', 'USER_ACTIVE', 'USER_STATUSES',
    'Vendor', 'VENDOR_PENDING', 'VENDOR_ACTIVE', 'VENDOR_INACTIVE', 'VENDOR_STATUSES', 'APPROVAL_STATUSES',
    'Product', 'CATEGORIES', 'PRODUCT_ACTIVE', 'PRODUCT_INACTIVE', 'PRODUCT_OUT_OF_STOCK', 'PRODUCT_STATUSES',
    'Order', 'LineItem', 'CustomerInfo', 'Amounts', 'TrackingEvent', 'TrackingInfo',
    'ORDER_PENDING', 'ORDER_CONFIRMED', 'ORDER_PROCESSING', 'ORDER_SHIPPED', 'ORDER_DELIVERED',
    'ORDER_CANCELLED', 'ORDER_STATUSES', 'CANCELLABLE_STATUSES', 'STATUS_LABELS',
    'PAYMENT_PENDING', 'PAYMENT_PAID', 'PAYMENT_STATUSES', 'PAYMENT_UPI', 'PAYMENT_COD', 'PAYMENT_METHODS',
]
