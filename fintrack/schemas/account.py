"""Pydantic schemas for Account model."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AccountUpdate(BaseModel):
    """Schema for updating an existing Account."""

    name: str | None = Field(None, min_length=1, max_length=100)
    balance: Decimal | None = Field(None, allow_inf_nan=False)
    currency: str | None = Field(None, min_length=2, max_length=10, description="Currency code")

    @field_validator("currency")
    @classmethod
    def uppercase_currency(cls, value: str | None) -> str | None:
        return value.strip().upper() if value is not None else None


class Account(BaseModel):
    """Schema for Account responses."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    balance: Decimal
    currency: str
