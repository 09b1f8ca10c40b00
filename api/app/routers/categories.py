import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import get_current_user
from app.core.rules import authorize
from app.models.category import Category
from app.models.user import User
from app.schemas.category import CategoryCreate, CategoryResponse, CategoryUpdate
from app.services import categories as defaults
from app.services.queries import custom_categories, get_or_404

router = APIRouter(prefix="/categories", tags=["categories"])


def _row(category: Category) -> dict:
    return {
        "id": str(category.id),
        "kind": category.kind,
        "name": category.name,
        "icon": category.icon,
        "color": category.color,
        "is_default": False,
    }


async def _load(db: AsyncSession, user: User, category_id: str) -> Category:
    if defaults.is_default_id(category_id):
        raise HTTPException(status_code=400, detail="Built-in categories can't be changed")
    try:
        parsed = uuid.UUID(category_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Category not found")
    category = await get_or_404(db, Category, parsed, "Category")
    authorize(user, "category", "write", category)
    return category


@router.get("/", response_model=list[CategoryResponse])
async def list_categories(
    kind: str | None = Query(default=None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Built-in categories first, then the user's own, optionally filtered by kind."""
    custom = await custom_categories(db, user)
    kinds = [kind] if kind else list(defaults.KINDS)
    if any(k not in defaults.KINDS for k in kinds):
        raise HTTPException(status_code=422, detail=f"kind must be one of {', '.join(defaults.KINDS)}")
    return [row for k in kinds for row in defaults.merged(k, custom)]


@router.post("/", response_model=CategoryResponse, status_code=201)
async def create_category(
    payload: CategoryCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    existing = {row["name"].lower() for row in defaults.merged(payload.kind, await custom_categories(db, user))}
    if payload.name.lower() in existing:
        raise HTTPException(status_code=409, detail="A category with that name already exists")

    category = Category(user_id=user.id, **payload.model_dump())
    db.add(category)
    await db.flush()
    await db.refresh(category)
    return _row(category)


@router.patch("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: str,
    payload: CategoryUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    category = await _load(db, user, category_id)
    for field, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(category, field, value)
    await db.flush()
    await db.refresh(category)
    return _row(category)


@router.delete("/{category_id}", status_code=204)
async def delete_category(
    category_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await db.delete(await _load(db, user, category_id))
