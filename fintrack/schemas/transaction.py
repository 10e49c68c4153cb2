"""Pydantic schemas for Transaction model."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TransactionBase(BaseModel):
    """Base Transaction schema with common fields."""

    title: str = Field(..., min_length=1, max_length=200)
    amount: Decimal = Field(..., allow_inf_nan=False, description="Signed amount")
    currency: str = Field(..., min_length=2, max_length=10, description="Currency code")
    account_id: int

    @field_validator("currency")
    @classmethod
    def uppercase_currency(cls, value: str) -> str:
        return value.strip().upper()


class TransactionCreate(TransactionBase):
    """Schema for creating a new Transaction."""

    created_at: datetime | None = None


class TransactionUpdate(BaseModel):
    """Schema for updating an existing Transaction."""

    title: str | None = Field(None, min_length=1, max_length=200)
    amount: Decimal | None = Field(None, allow_inf_nan=False)
    currency: str | None = Field(None, min_length=2, max_length=10)
    account_id: int | None = None
    created_at: datetime | None = None

    @field_validator("currency")
    @classmethod
    def uppercase_currency(cls, value: str | None) -> str | None:
        return value.strip().upper() if value is not None else None


class Transaction(TransactionBase):
    """Schema for Transaction responses."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime
