"""
Pydantic schemas for transaction requests and responses.
"""

from pydantic import BaseModel, Field, ConfigDict
from decimal import Decimal
from datetime import datetime
from typing import Optional
from atm.models.transaction import TransactionType


class AmountInput(BaseModel):
    """Money amount as typed by the user."""
    amount: Decimal = Field(
        ...,
        gt=0,
        max_digits=15,
        decimal_places=2,
        allow_inf_nan=False,
        description="Amount to move (positive, at most 2 decimal places)"
    )


class TransactionRecord(BaseModel):
    """Schema for a stored transaction row."""
    id: int
    account_id: int
    type: TransactionType
    amount: Decimal
    target_id: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TransferResult(BaseModel):
    """Both halves of a transfer plus the counterparties' display names."""
    outgoing: TransactionRecord
    incoming: TransactionRecord
    sender_name: str
    receiver_name: str
