from .admin import admin_bp
from .auth import auth_bp
from .orders import orders_bp
from .products import products_bp
from .system import system_bp
from .users import users_bp
from .vendors import vendors_bp

ALL_BLUEPRINTS = (system_bp, auth_bp, users_bp, vendors_bp, products_bp, orders_bp, admin_bp)
