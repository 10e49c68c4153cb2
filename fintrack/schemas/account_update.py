"""Pydantic schemas for the balance audit trail."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class BalanceUpdateCreate(BaseModel):
    """Schema for recording a back-dated balance."""

    previous_balance: Decimal = Field(..., allow_inf_nan=False)
    new_balance: Decimal = Field(..., allow_inf_nan=False)
    updated_at: datetime


class BalanceUpdate(BaseModel):
    """Schema for audit entry responses."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    account_id: int
    previous_balance: Decimal
    new_balance: Decimal
    updated_at: datetime
