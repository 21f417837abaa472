# spendbook/schemas/transaction.py
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from spendbook.schemas.fields import coerce_amount, coerce_timestamp, require_text


class TransactionBase(BaseModel):
    description: str = Field(..., description="E.g. Coffee at the corner shop")
    amount: int = Field(..., description="Signed amount in the smallest currency unit")
    category: str = Field(..., description="Category label, e.g. Food")
    date: datetime = Field(..., description="ISO 8601 date or date/time of the transaction")

    @field_validator("description", "category", mode="before")
    @classmethod
    def check_text(cls, value: Any) -> str:
        return require_text(value)

    @field_validator("amount", mode="before")
    @classmethod
    def check_amount(cls, value: Any) -> int:
        return coerce_amount(value)

    @field_validator("date", mode="before")
    @classmethod
    def check_date(cls, value: Any) -> datetime:
        return coerce_timestamp(value)


class TransactionCreate(TransactionBase):
    pass


class TransactionUpdate(TransactionBase):
    """Full replace: every mutable field is required."""
    pass


class TransactionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    description: str
    amount: int
    category: str
    date: datetime
    created_at: datetime


class DeletedResponse(BaseModel):
    message: str
    id: int
