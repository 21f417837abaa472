# spendbook/api/v1/routes/transactions.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from spendbook.api.deps import get_current_user
from spendbook.core.database import get_async_session
from spendbook.core.exceptions import ValidationError
from spendbook.crud.transaction import (
    create_transaction_for_user,
    delete_transaction,
    get_transaction_by_id,
    get_transactions_for_user,
    update_transaction,
)
from spendbook.schemas.fields import parse_date_bound
from spendbook.schemas.transaction import (
    DeletedResponse,
    TransactionCreate,
    TransactionRead,
    TransactionUpdate,
)

router = APIRouter(prefix="/transactions", tags=["transactions"])


def _bound(value: Optional[str], name: str, end: bool = False):
    if not value:
        return None
    try:
        return parse_date_bound(value, end=end)
    except ValueError:
        raise ValidationError("Please provide a valid date", invalid=[name])


@router.get("", response_model=List[TransactionRead])
async def read_transactions(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    category: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    return await get_transactions_for_user(
        user_id,
        db,
        start_date=_bound(start_date, "startDate"),
        end_date=_bound(end_date, "endDate", end=True),
        category=category,
    )


@router.post("", response_model=TransactionRead, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    tx_in: TransactionCreate,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    return await create_transaction_for_user(user_id, tx_in, db)


@router.get("/{transaction_id}", response_model=TransactionRead)
async def read_transaction(
    transaction_id: int,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    return await get_transaction_by_id(transaction_id, user_id, db)


@router.put("/{transaction_id}", response_model=TransactionRead)
async def update_transaction_endpoint(
    transaction_id: int,
    tx_in: TransactionUpdate,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    return await update_transaction(transaction_id, user_id, tx_in, db)


@router.delete("/{transaction_id}", response_model=DeletedResponse)
async def delete_transaction_endpoint(
    transaction_id: int,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    deleted_id = await delete_transaction(transaction_id, user_id, db)
    return DeletedResponse(message="Transaction deleted successfully", id=deleted_id)
