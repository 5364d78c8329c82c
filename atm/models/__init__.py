"""
Database models package.
"""

from atm.models.account import Account
from atm.models.transaction import Transaction, TransactionType

__all__ = ["Account", "Transaction", "TransactionType"]
