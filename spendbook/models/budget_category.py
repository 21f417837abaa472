# spendbook/models/budget_category.py
from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint, func

from spendbook.core.database import Base
from spendbook.models.transaction import utcnow


class BudgetCategory(Base):
    __tablename__ = "budget_categories"
    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_budget_categories_owner_name"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    # Budget ceiling in the smallest currency unit
    amount = Column(Integer, nullable=False)

    created_at = Column(DateTime, nullable=False, default=utcnow, server_default=func.now())

    def __repr__(self):
        return f"<BudgetCategory name={self.name} user_id={self.user_id}>"
