"""API v1 router aggregation"""
from fastapi import APIRouter

from grocery.api.api_v1.endpoints import (
    auth, categories, products, cart, b2b, admin, audit_logs
)
from grocery.api.api_v1.endpoints.orders import router as orders_router

api_router = APIRouter()

# Storefront
api_router.include_router(auth.router, prefix="/auth", tags=["Auth"])
api_router.include_router(categories.router, prefix="/categories", tags=["Categories"])
api_router.include_router(products.router, prefix="/products", tags=["Products"])
api_router.include_router(cart.router, prefix="/cart", tags=["Cart"])
api_router.include_router(orders_router, prefix="/orders", tags=["Orders"])

# Wholesale accounts
api_router.include_router(b2b.router, prefix="/b2b", tags=["B2B"])

# Back office
api_router.include_router(admin.router, prefix="/admin", tags=["Admin"])
api_router.include_router(audit_logs.router, prefix="/audit-logs", tags=["Audit logs"])
