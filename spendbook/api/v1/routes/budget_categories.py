# spendbook/api/v1/routes/budget_categories.py
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from spendbook.api.deps import get_current_user
from spendbook.core.database import get_async_session
from spendbook.crud.budget_category import (
    create_category_for_user,
    delete_category,
    get_categories_for_user,
    update_category,
)
from spendbook.schemas.budget_category import (
    BudgetCategoryCreate,
    BudgetCategoryRead,
    BudgetCategoryUpdate,
)
from spendbook.schemas.transaction import DeletedResponse

router = APIRouter(prefix="/budget-categories", tags=["budget categories"])


@router.get("", response_model=List[BudgetCategoryRead])
async def read_categories(
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    return await get_categories_for_user(user_id, db)


@router.post("", response_model=BudgetCategoryRead, status_code=status.HTTP_201_CREATED)
async def create_category(
    cat_in: BudgetCategoryCreate,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    return await create_category_for_user(user_id, cat_in, db)


@router.put("/{category_id}", response_model=BudgetCategoryRead)
async def update_category_endpoint(
    category_id: int,
    cat_in: BudgetCategoryUpdate,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    return await update_category(category_id, user_id, cat_in, db)


@router.delete("/{category_id}", response_model=DeletedResponse)
async def delete_category_endpoint(
    category_id: int,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    deleted_id = await delete_category(category_id, user_id, db)
    return DeletedResponse(message="Category deleted successfully", id=deleted_id)
