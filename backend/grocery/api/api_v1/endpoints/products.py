"""Product catalog API

Reads are public and shaped per storefront (account_type=b2c|b2b); writes
are admin only.
"""

from decimal import Decimal, ROUND_FLOOR
from typing import Any, List, Optional, Union
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from grocery.core.config import settings
from grocery.core.deps import get_db, require_admin
from grocery.core.logging_config import get_logger
from grocery.models.category import Category, Subcategory
from grocery.models.product import Product
from grocery.models.stock import StockFlow
from grocery.models.user import User
from grocery.schemas.product import (
    ProductCreate, ProductUpdate, ProductCreatedResponse,
    B2CProductView, B2BProductView, B2CProductDetail, B2BProductDetail,
    StockFlowResponse
)
from .audit_logs import create_audit_log

router = APIRouter()
logger = get_logger(__name__)

ACCOUNT_TYPE_PATTERN = "^(b2c|b2b)$"


def _default_pool(total: int, share: Decimal) -> int:
    return int((Decimal(total) * share).to_integral_value(rounding=ROUND_FLOOR))


def build_b2c_view(product: Product, detail: bool = False) -> Union[B2CProductView, B2CProductDetail]:
    data = dict(
        product_id=product.id,
        name=product.name,
        brand=product.brand,
        sku=product.sku,
        unit=product.unit,
        mrp=float(product.b2c_mrp),
        selling_price=float(product.b2c_selling_price),
        discount_percentage=product.discount_percentage,
        max_quantity=product.b2c_max_quantity,
        in_stock=(product.b2c_reserved_stock or 0) > 0,
        available_stock=product.b2c_reserved_stock or 0)
    if not detail:
        return B2CProductView(**data)
    return B2CProductDetail(**data, **_detail_fields(product))


def build_b2b_view(product: Product, detail: bool = False) -> Union[B2BProductView, B2BProductDetail]:
    data = dict(
        product_id=product.id,
        name=product.name,
        brand=product.brand,
        sku=product.sku,
        unit=product.unit,
        base_price=float(product.b2b_base_price),
        min_order_qty=product.b2b_min_order_qty,
        max_order_qty=product.b2b_max_order_qty,
        bulk_tiers=product.b2b_bulk_tiers or [],
        in_stock=(product.total_stock or 0) > 0,
        available_stock=product.b2b_reserved_stock or 0)
    if not detail:
        return B2BProductView(**data)
    return B2BProductDetail(**data, **_detail_fields(product))


def _detail_fields(product: Product) -> dict:
    return dict(
        description=product.description,
        quantity_per_unit=float(product.quantity_per_unit or 1),
        images=product.images or [],
        category=product.category.name if product.category else "",
        subcategory=product.subcategory.name if product.subcategory else "")


async def _check_category(db: AsyncSession, category_id: Optional[int], subcategory_id: Optional[int]):
    if category_id is not None and not await db.get(Category, category_id):
        raise HTTPException(status_code=400, detail="Category not found")
    if subcategory_id is not None:
        sub = await db.get(Subcategory, subcategory_id)
        if not sub:
            raise HTTPException(status_code=400, detail="Subcategory not found")
        if category_id is not None and sub.category_id != category_id:
            raise HTTPException(status_code=400, detail="Subcategory does not belong to the category")


@router.get("/", response_model=List[Union[B2BProductView, B2CProductView]])
async def list_products(
    *,
    db: AsyncSession = Depends(get_db),
    account_type: str = Query("b2c", pattern=ACCOUNT_TYPE_PATTERN),
    category_id: Optional[int] = Query(None),
    subcategory_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None)) -> Any:
    """Active products for one storefront"""
    query = select(Product).where(
        Product.is_deleted == False,  # noqa: E712
        Product.status == "active"
    )
    if category_id:
        query = query.where(Product.category_id == category_id)
    if subcategory_id:
        query = query.where(Product.subcategory_id == subcategory_id)
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(
            Product.name.ilike(pattern),
            Product.brand.ilike(pattern),
            Product.sku.ilike(pattern)
        ))
    query = query.order_by(Product.created_at.desc(), Product.id.desc())

    products = (await db.execute(query)).scalars().all()
    build = build_b2b_view if account_type == "b2b" else build_b2c_view
    return [build(p) for p in products]


@router.get("/{product_id}", response_model=Union[B2BProductDetail, B2CProductDetail])
async def get_product(
    *,
    db: AsyncSession = Depends(get_db),
    product_id: int,
    account_type: str = Query("b2c", pattern=ACCOUNT_TYPE_PATTERN)) -> Any:
    result = await db.execute(
        select(Product)
        .options(selectinload(Product.category), selectinload(Product.subcategory))
        .where(Product.id == product_id)
    )
    product = result.scalar_one_or_none()
    if not product or product.is_deleted:
        raise HTTPException(status_code=404, detail="Product not found")

    if account_type == "b2b":
        return build_b2b_view(product, detail=True)
    return build_b2c_view(product, detail=True)


@router.post("/", response_model=ProductCreatedResponse, status_code=201)
async def create_product(
    *,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
    product_in: ProductCreate) -> Any:
    if product_in.b2b_base_price >= product_in.b2c_selling_price:
        raise HTTPException(status_code=400, detail="B2B base price must be less than B2C selling price")

    existing = await db.execute(select(Product).where(Product.sku == product_in.sku))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=400, detail="Product with this SKU already exists")

    await _check_category(db, product_in.category_id, product_in.subcategory_id)

    data = product_in.model_dump(exclude={"b2b_bulk_tiers", "b2c_reserved_stock", "b2b_reserved_stock"})
    b2c_pool = product_in.b2c_reserved_stock
    if b2c_pool is None:
        b2c_pool = _default_pool(product_in.total_stock, settings.B2C_STOCK_SHARE)
    b2b_pool = product_in.b2b_reserved_stock
    if b2b_pool is None:
        b2b_pool = _default_pool(product_in.total_stock, settings.B2B_STOCK_SHARE)

    product = Product(
        **data,
        b2b_bulk_tiers=[t.model_dump() for t in product_in.b2b_bulk_tiers],
        b2c_reserved_stock=b2c_pool,
        b2b_reserved_stock=b2b_pool)
    db.add(product)
    await db.flush()
    await create_audit_log(
        db, admin.id, "create", "product",
        resource_id=product.id, resource_name=product.sku)
    await db.commit()

    logger.info(f"Product {product.sku} created (b2c pool {b2c_pool}, b2b pool {b2b_pool})")
    return ProductCreatedResponse(product_id=product.id, message="Product created with tiered pricing")


@router.put("/{product_id}", response_model=B2BProductDetail)
async def update_product(
    *,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
    product_id: int,
    product_in: ProductUpdate) -> Any:
    """Partial update; returns the wholesale view (it carries the tiers)"""
    product = await db.get(Product, product_id)
    if not product or product.is_deleted:
        raise HTTPException(status_code=404, detail="Product not found")

    update_data = product_in.model_dump(exclude_unset=True)
    if "sku" in update_data and update_data["sku"] != product.sku:
        existing = await db.execute(select(Product).where(Product.sku == update_data["sku"]))
        if existing.scalar_one_or_none():
            raise HTTPException(status_code=400, detail="Product with this SKU already exists")
    if "category_id" in update_data or "subcategory_id" in update_data:
        await _check_category(
            db,
            update_data.get("category_id", product.category_id),
            update_data.get("subcategory_id", product.subcategory_id))

    base_price = update_data.get("b2b_base_price", product.b2b_base_price)
    selling_price = update_data.get("b2c_selling_price", product.b2c_selling_price)
    if Decimal(str(base_price)) >= Decimal(str(selling_price)):
        raise HTTPException(status_code=400, detail="B2B base price must be less than B2C selling price")

    for field, value in update_data.items():
        setattr(product, field, value)
    if product_in.b2b_bulk_tiers is not None:
        product.b2b_bulk_tiers = [t.model_dump() for t in product_in.b2b_bulk_tiers]

    await create_audit_log(
        db, admin.id, "update", "product",
        resource_id=product.id, resource_name=product.sku,
        new_value=product_in.model_dump(exclude_unset=True, mode="json"))
    await db.commit()

    result = await db.execute(
        select(Product)
        .options(selectinload(Product.category), selectinload(Product.subcategory))
        .where(Product.id == product_id)
        .execution_options(populate_existing=True)
    )
    return build_b2b_view(result.scalar_one(), detail=True)


@router.delete("/{product_id}")
async def delete_product(
    *,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
    product_id: int) -> Any:
    """Soft delete"""
    product = await db.get(Product, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    product.is_deleted = True
    product.status = "inactive"
    await create_audit_log(
        db, admin.id, "delete", "product",
        resource_id=product.id, resource_name=product.sku)
    await db.commit()
    return {"message": "Product deleted successfully"}


@router.get("/{product_id}/stock-flows", response_model=List[StockFlowResponse])
async def list_stock_flows(
    *,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
    product_id: int,
    limit: int = Query(50, ge=1, le=200)) -> Any:
    """Stock movements of a product, newest first"""
    result = await db.execute(
        select(StockFlow)
        .where(StockFlow.product_id == product_id)
        .order_by(StockFlow.created_at.desc(), StockFlow.id.desc())
        .limit(limit)
    )
    return [
        StockFlowResponse(
            id=flow.id,
            product_id=flow.product_id,
            order_id=flow.order_id,
            channel=flow.channel,
            flow_type=flow.flow_type,
            type_display=flow.type_display,
            quantity_change=flow.quantity_change,
            quantity_before=flow.quantity_before,
            quantity_after=flow.quantity_after,
            reason=flow.reason,
            created_at=flow.created_at)
        for flow in result.scalars().all()
    ]
