from grocery.models.user import User
from grocery.models.business import B2BBusiness, B2BDeliveryAddress
from grocery.models.category import Category, Subcategory
from grocery.models.product import Product
from grocery.models.stock import StockFlow
from grocery.models.cart import Cart, CartItem
from grocery.models.order import Order, OrderItem
from grocery.models.audit_log import AuditLog

__all__ = [
    "User",
    "B2BBusiness",
    "B2BDeliveryAddress",
    "Category",
    "Subcategory",
    "Product",
    "StockFlow",
    "Cart",
    "CartItem",
    "Order",
    "OrderItem",
    "AuditLog",
]
