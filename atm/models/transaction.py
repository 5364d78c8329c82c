"""
Transaction database model.
Append-only log of every balance change.
"""

from sqlalchemy import Column, Numeric, DateTime, Integer, ForeignKey, CheckConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
from atm.database import Base
import enum


class TransactionType(enum.Enum):
    """Kinds of balance change."""
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    TRANSFER_OUT = "transfer_out"
    TRANSFER_IN = "transfer_in"


class Transaction(Base):
    """
    Transaction table - one row per balance change.

    ``amount`` is always positive; the direction comes from ``type``.
    ``target_id`` is the counterparty and is set for transfer rows only.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), index=True, nullable=False)
    type = Column(
        SQLEnum(TransactionType, values_callable=lambda kinds: [k.value for k in kinds]),
        nullable=False
    )
    amount = Column(Numeric(precision=15, scale=2), nullable=False)
    target_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    account = relationship(
        "Account",
        foreign_keys=[account_id],
        back_populates="transactions"
    )
    target = relationship("Account", foreign_keys=[target_id])

    def __repr__(self):
        return f"<Transaction(id={self.id}, account={self.account_id}, type={self.type.value}, amount={self.amount})>"
