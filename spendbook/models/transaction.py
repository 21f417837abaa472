# spendbook/models/transaction.py
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint, func

from spendbook.core.database import Base


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the TIMESTAMP columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        # Authoritative duplicate prevention under concurrency
        UniqueConstraint(
            "user_id", "description", "amount", "category", "date",
            name="uq_transactions_owner_tuple",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, nullable=False, index=True)
    description = Column(String, nullable=False)
    amount = Column(Integer, nullable=False)
    category = Column(String, nullable=False)
    date = Column(DateTime, nullable=False)

    created_at = Column(DateTime, nullable=False, default=utcnow, server_default=func.now())

    def __repr__(self):
        return f"<Transaction amount={self.amount} date={self.date} user_id={self.user_id}>"
