# spendbook/schemas/budget_category.py
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from spendbook.schemas.fields import coerce_amount, require_text


class BudgetCategoryBase(BaseModel):
    name: str = Field(..., description="Category name, unique per user")
    amount: int = Field(..., description="Budget ceiling in the smallest currency unit")

    @field_validator("name", mode="before")
    @classmethod
    def check_name(cls, value: Any) -> str:
        return require_text(value)

    @field_validator("amount", mode="before")
    @classmethod
    def check_amount(cls, value: Any) -> int:
        return coerce_amount(value)


class BudgetCategoryCreate(BudgetCategoryBase):
    pass


class BudgetCategoryUpdate(BudgetCategoryBase):
    pass


class BudgetCategoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    name: str
    amount: int
    created_at: datetime
