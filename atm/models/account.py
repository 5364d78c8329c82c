"""
Account database model.
Represents ATM accounts in the system.
"""

from sqlalchemy import Column, String, Numeric, DateTime, Integer
from sqlalchemy.orm import relationship
from datetime import datetime
from atm.database import Base


class Account(Base):
    """
    Account table - stores the login handle, PIN hash and balance.
    """
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), index=True, nullable=False)
    pin_hash = Column(String(60), nullable=False)
    balance = Column(Numeric(precision=15, scale=2), nullable=False, default=0.00)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Rows that explain this account's balance
    transactions = relationship(
        "Transaction",
        foreign_keys="Transaction.account_id",
        back_populates="account"
    )

    def __repr__(self):
        # pin_hash is deliberately left out
        return f"<Account(id={self.id}, name={self.name}, balance={self.balance})>"
