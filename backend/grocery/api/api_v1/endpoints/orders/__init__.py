"""
Orders module
- crud.py: place and read orders
- actions.py: cancel and reorder
- stock_ops.py / credit_ops.py: stock and credit movements
"""
from fastapi import APIRouter

from .crud import router as crud_router
from .actions import router as actions_router
from .actions import cancel_order_effects

router = APIRouter()
router.include_router(crud_router)
router.include_router(actions_router)

__all__ = ["router", "cancel_order_effects"]
