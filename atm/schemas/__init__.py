"""
Pydantic schemas package.
"""

from atm.schemas.account import RegisterRequest, AccountPublic
from atm.schemas.transaction import AmountInput, TransactionRecord, TransferResult
from atm.schemas.session import SessionIdentity

__all__ = [
    "RegisterRequest",
    "AccountPublic",
    "AmountInput",
    "TransactionRecord",
    "TransferResult",
    "SessionIdentity"
]
