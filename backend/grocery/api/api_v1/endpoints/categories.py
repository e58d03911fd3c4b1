"""Catalog categories and subcategories"""

from typing import Any, List
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from grocery.core.deps import get_db, require_admin
from grocery.models.category import Category, Subcategory
from grocery.models.user import User
from grocery.schemas.category import (
    CategoryCreate, CategoryUpdate, CategoryResponse,
    SubcategoryCreate, SubcategoryUpdate, SubcategoryResponse
)
from .audit_logs import create_audit_log

router = APIRouter()


def _build_response(cat: Category, active_only: bool = True) -> CategoryResponse:
    """Build response with (active) subcategories"""
    subs = [s for s in cat.subcategories if s.is_active or not active_only]
    return CategoryResponse(
        id=cat.id,
        name=cat.name,
        description=cat.description,
        image_url=cat.image_url,
        is_active=cat.is_active,
        created_at=cat.created_at,
        subcategories=[SubcategoryResponse.model_validate(s) for s in subs])


async def _load_category(db: AsyncSession, category_id: int) -> Category:
    result = await db.execute(
        select(Category).options(selectinload(Category.subcategories))
        .where(Category.id == category_id)
        .execution_options(populate_existing=True)
    )
    cat = result.scalar_one_or_none()
    if not cat:
        raise HTTPException(status_code=404, detail="Category not found")
    return cat


async def _ensure_unique_name(db: AsyncSession, name: str, exclude_id: int = None):
    query = select(Category).where(Category.name == name)
    if exclude_id is not None:
        query = query.where(Category.id != exclude_id)
    if (await db.execute(query)).scalar_one_or_none():
        raise HTTPException(status_code=400, detail="Category with this name already exists")


@router.get("/", response_model=List[CategoryResponse])
async def list_categories(*, db: AsyncSession = Depends(get_db)) -> Any:
    """Active categories with their active subcategories"""
    result = await db.execute(
        select(Category).options(selectinload(Category.subcategories))
        .where(Category.is_active == True)  # noqa: E712
        .order_by(Category.name)
    )
    return [_build_response(c) for c in result.scalars().unique().all()]


@router.get("/{category_id}/subcategories", response_model=List[SubcategoryResponse])
async def list_subcategories(
    *,
    db: AsyncSession = Depends(get_db),
    category_id: int) -> Any:
    result = await db.execute(
        select(Subcategory)
        .where(and_(Subcategory.category_id == category_id, Subcategory.is_active == True))  # noqa: E712
        .order_by(Subcategory.name)
    )
    return [SubcategoryResponse.model_validate(s) for s in result.scalars().all()]


@router.post("/", response_model=CategoryResponse, status_code=201)
async def create_category(
    *,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
    category_in: CategoryCreate) -> Any:
    await _ensure_unique_name(db, category_in.name)

    cat = Category(
        name=category_in.name,
        description=category_in.description,
        image_url=category_in.image_url)
    db.add(cat)
    await db.flush()
    await create_audit_log(
        db, admin.id, "create", "category",
        resource_id=cat.id, resource_name=cat.name)
    await db.commit()

    return _build_response(await _load_category(db, cat.id))


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    *,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
    category_id: int,
    category_in: CategoryUpdate) -> Any:
    cat = await _load_category(db, category_id)

    if category_in.name and category_in.name != cat.name:
        await _ensure_unique_name(db, category_in.name, exclude_id=category_id)

    update_data = category_in.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(cat, field, value)
    await create_audit_log(
        db, admin.id, "update", "category",
        resource_id=cat.id, resource_name=cat.name, new_value=update_data)
    await db.commit()

    return _build_response(await _load_category(db, category_id), active_only=False)


@router.delete("/{category_id}")
async def delete_category(
    *,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
    category_id: int) -> Any:
    """Soft delete"""
    cat = await _load_category(db, category_id)
    cat.is_active = False
    await create_audit_log(
        db, admin.id, "delete", "category",
        resource_id=cat.id, resource_name=cat.name)
    await db.commit()
    return {"message": "Category deleted successfully"}


@router.post("/{category_id}/subcategories", response_model=SubcategoryResponse, status_code=201)
async def create_subcategory(
    *,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
    category_id: int,
    subcategory_in: SubcategoryCreate) -> Any:
    await _load_category(db, category_id)

    existing = await db.execute(
        select(Subcategory).where(and_(
            Subcategory.category_id == category_id,
            Subcategory.name == subcategory_in.name
        ))
    )
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=400, detail="Subcategory with this name already exists in this category")

    sub = Subcategory(
        category_id=category_id,
        name=subcategory_in.name,
        description=subcategory_in.description)
    db.add(sub)
    await db.flush()
    await create_audit_log(
        db, admin.id, "create", "subcategory",
        resource_id=sub.id, resource_name=sub.name)
    await db.commit()
    await db.refresh(sub)
    return SubcategoryResponse.model_validate(sub)


@router.put("/subcategories/{subcategory_id}", response_model=SubcategoryResponse)
async def update_subcategory(
    *,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
    subcategory_id: int,
    subcategory_in: SubcategoryUpdate) -> Any:
    sub = await db.get(Subcategory, subcategory_id)
    if not sub:
        raise HTTPException(status_code=404, detail="Subcategory not found")

    if subcategory_in.name and subcategory_in.name != sub.name:
        existing = await db.execute(
            select(Subcategory).where(and_(
                Subcategory.category_id == sub.category_id,
                Subcategory.name == subcategory_in.name,
                Subcategory.id != subcategory_id
            ))
        )
        if existing.scalar_one_or_none():
            raise HTTPException(status_code=400, detail="Subcategory with this name already exists in this category")

    update_data = subcategory_in.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(sub, field, value)
    await create_audit_log(
        db, admin.id, "update", "subcategory",
        resource_id=sub.id, resource_name=sub.name, new_value=update_data)
    await db.commit()
    await db.refresh(sub)
    return SubcategoryResponse.model_validate(sub)


@router.delete("/subcategories/{subcategory_id}")
async def delete_subcategory(
    *,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
    subcategory_id: int) -> Any:
    """Soft delete"""
    sub = await db.get(Subcategory, subcategory_id)
    if not sub:
        raise HTTPException(status_code=404, detail="Subcategory not found")
    sub.is_active = False
    await create_audit_log(
        db, admin.id, "delete", "subcategory",
        resource_id=sub.id, resource_name=sub.name)
    await db.commit()
    return {"message": "Subcategory deleted successfully"}
