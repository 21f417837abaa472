# spendbook/crud/budget_category.py
import logging
from typing import List

from sqlalchemy import desc
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from spendbook.core.db_utils import is_unique_violation
from spendbook.core.exceptions import DuplicateCategory, InternalError, NotFound
from spendbook.models.budget_category import BudgetCategory
from spendbook.schemas.budget_category import BudgetCategoryCreate, BudgetCategoryUpdate

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "A category with this name already exists for the user."


async def get_categories_for_user(user_id: str, db: AsyncSession) -> List[BudgetCategory]:
    result = await db.execute(
        select(BudgetCategory)
        .where(BudgetCategory.user_id == user_id)
        .order_by(desc(BudgetCategory.created_at), desc(BudgetCategory.id))
    )
    return list(result.scalars().all())


async def get_category_by_id(category_id: int, user_id: str, db: AsyncSession) -> BudgetCategory:
    result = await db.execute(
        select(BudgetCategory).where(BudgetCategory.id == category_id, BudgetCategory.user_id == user_id)
    )
    category = result.scalar_one_or_none()
    if category is None:
        raise NotFound("Category not found or not authorized")
    return category


async def _commit(db: AsyncSession, action: str) -> None:
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        if is_unique_violation(e):
            raise DuplicateCategory(DUPLICATE_MESSAGE) from e
        raise InternalError(str(e)) from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception(f"Failed to {action} budget category")
        raise InternalError(str(e)) from e


async def create_category_for_user(user_id: str, cat_in: BudgetCategoryCreate, db: AsyncSession) -> BudgetCategory:
    new_cat = BudgetCategory(**cat_in.model_dump(), user_id=user_id)
    db.add(new_cat)
    await _commit(db, "create")
    await db.refresh(new_cat)
    return new_cat


async def update_category(
    category_id: int, user_id: str, cat_in: BudgetCategoryUpdate, db: AsyncSession
) -> BudgetCategory:
    category = await get_category_by_id(category_id, user_id, db)
    for field, value in cat_in.model_dump().items():
        setattr(category, field, value)
    await _commit(db, "update")
    await db.refresh(category)
    return category


async def delete_category(category_id: int, user_id: str, db: AsyncSession) -> int:
    category = await get_category_by_id(category_id, user_id, db)
    await db.delete(category)
    await _commit(db, "delete")
    return category_id
