# spendbook/crud/transaction.py
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import and_, desc
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from spendbook.core.db_utils import is_unique_violation
from spendbook.core.exceptions import DuplicateTransaction, InternalError, NotFound
from spendbook.models.transaction import Transaction, utcnow
from spendbook.schemas.transaction import TransactionCreate, TransactionUpdate

logger = logging.getLogger(__name__)

# Identical submissions inside this window are reported as double-submits
DUPLICATE_WINDOW = timedelta(seconds=60)


async def get_transactions_for_user(
    user_id: str,
    db: AsyncSession,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    category: Optional[str] = None,
) -> List[Transaction]:
    """List a user's transactions, newest first.

    The date range only applies when both bounds are given; bounds are inclusive.
    """
    query = select(Transaction).where(Transaction.user_id == user_id)
    if start_date is not None and end_date is not None:
        query = query.where(Transaction.date.between(start_date, end_date))
    if category:
        query = query.where(Transaction.category == category)
    query = query.order_by(desc(Transaction.date), desc(Transaction.created_at), desc(Transaction.id))

    try:
        result = await db.execute(query)
    except SQLAlchemyError as e:
        logger.exception(f"Failed to list transactions for user {user_id}")
        raise InternalError(str(e)) from e
    return list(result.scalars().all())


async def get_transaction_by_id(transaction_id: int, user_id: str, db: AsyncSession) -> Transaction:
    result = await db.execute(
        select(Transaction).where(Transaction.id == transaction_id, Transaction.user_id == user_id)
    )
    tx = result.scalar_one_or_none()
    if tx is None:
        raise NotFound("Transaction not found or not authorized")
    return tx


async def find_recent_duplicate(
    user_id: str, tx_in: TransactionCreate, now: datetime, db: AsyncSession
) -> Optional[int]:
    """Id of an identical transaction written by this user within the window."""
    result = await db.execute(
        select(Transaction.id)
        .where(
            and_(
                Transaction.user_id == user_id,
                Transaction.description == tx_in.description,
                Transaction.amount == tx_in.amount,
                Transaction.category == tx_in.category,
                Transaction.date == tx_in.date,
                Transaction.created_at > now - DUPLICATE_WINDOW,
            )
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


async def create_transaction_for_user(user_id: str, tx_in: TransactionCreate, db: AsyncSession) -> Transaction:
    """
    Insert a transaction unless it repeats a very recent identical one.

    The window check and the insert share one storage transaction. Two
    concurrent requests can both pass the check; the unique constraint on the
    table then rejects the second insert, which is reported the same way.
    """
    now = utcnow()
    new_tx = None
    try:
        duplicate_id = await find_recent_duplicate(user_id, tx_in, now, db)
        if duplicate_id is None:
            new_tx = Transaction(**tx_in.model_dump(), user_id=user_id, created_at=now)
            db.add(new_tx)
            await db.commit()
            await db.refresh(new_tx)
    except IntegrityError as e:
        await db.rollback()
        if is_unique_violation(e):
            logger.info(f"Transaction for user {user_id} rejected by unique constraint")
            raise DuplicateTransaction("This transaction already exists") from e
        logger.exception(f"Integrity error creating transaction for user {user_id}")
        raise InternalError(str(e)) from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception(f"Failed to create transaction for user {user_id}")
        raise InternalError(str(e)) from e

    if new_tx is None:
        await db.rollback()
        logger.info(f"Duplicate transaction for user {user_id} matches transaction {duplicate_id}")
        raise DuplicateTransaction(
            "A similar transaction was submitted in the last minute. Please wait or modify the details.",
            duplicate_id=duplicate_id,
        )
    return new_tx


async def update_transaction(
    transaction_id: int, user_id: str, tx_in: TransactionUpdate, db: AsyncSession
) -> Transaction:
    """Replace every mutable field of a transaction the user owns."""
    try:
        tx = await get_transaction_by_id(transaction_id, user_id, db)
        for field, value in tx_in.model_dump().items():
            setattr(tx, field, value)
        await db.commit()
        await db.refresh(tx)
    except NotFound:
        await db.rollback()
        raise
    except IntegrityError as e:
        await db.rollback()
        if is_unique_violation(e):
            raise DuplicateTransaction("This transaction already exists") from e
        raise InternalError(str(e)) from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception(f"Failed to update transaction {transaction_id}")
        raise InternalError(str(e)) from e
    return tx


async def delete_transaction(transaction_id: int, user_id: str, db: AsyncSession) -> int:
    """Delete a transaction the user owns and return its id."""
    try:
        tx = await get_transaction_by_id(transaction_id, user_id, db)
        await db.delete(tx)
        await db.commit()
    except NotFound:
        await db.rollback()
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception(f"Failed to delete transaction {transaction_id}")
        raise InternalError(str(e)) from e
    return transaction_id
