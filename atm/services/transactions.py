"""
Transaction engine.
Deposits, withdrawals and transfers for the logged-in account.

Implements:
- Atomicity: balance writes and log rows commit together or not at all
- Concurrency: rows are locked (SELECT FOR UPDATE) before they are changed,
  balances move through atomic SQL expressions, debits are conditional
- Deadlock avoidance: a transfer locks both accounts in ascending id order
"""

import logging
from decimal import Decimal

from pydantic import ValidationError
from sqlalchemy import Numeric, func
from sqlalchemy.orm import Session

from atm.core.config import settings
from atm.core.errors import (
    AccountNotFound,
    ConcurrencyConflict,
    InsufficientFunds,
    InvalidAmount,
    InvalidTarget,
    TargetNotFound,
)
from atm.core.logging_config import log_action
from atm.database import atomic
from atm.models.account import Account
from atm.models.transaction import Transaction, TransactionType
from atm.schemas.transaction import AmountInput, TransactionRecord, TransferResult
from atm.services.session import FileSessionStore

logger = logging.getLogger(__name__)


def parse_amount(amount) -> Decimal:
    """Validate a user-supplied amount; raises InvalidAmount."""
    try:
        return AmountInput(amount=amount).amount
    except ValidationError:
        raise InvalidAmount() from None


def _cents(expression):
    # Stores without a native decimal type (SQLite keeps REAL) drift by
    # fractions of a cent; round so the guard and the stored balance agree
    # with the Numeric(15, 2) value the engine reads back.
    return func.round(expression, 2, type_=Numeric(15, 2))


class TransactionEngine:
    """
    Balance-changing operations for the account in the current session.

    Each public operation runs as one database transaction. If a conditional
    debit loses a race with another writer the whole operation is rolled back
    and retried, up to ``max_retries`` times.
    """

    def __init__(self, db: Session, sessions: FileSessionStore, max_retries: int = None):
        self.db = db
        self.sessions = sessions
        self.max_retries = max_retries if max_retries is not None else settings.MAX_CONFLICT_RETRIES

    def deposit(self, amount) -> TransactionRecord:
        """Put money into the logged-in account."""
        identity = self.sessions.require()
        value = parse_amount(amount)

        record = self._run(self._deposit, identity.id, value)
        log_action(
            logger, "info", "Deposit completed", action="deposit",
            account_id=identity.id, extra={"transaction_id": record.id, "amount": value}
        )
        return record

    def withdraw(self, amount) -> TransactionRecord:
        """Take money out of the logged-in account."""
        identity = self.sessions.require()
        value = parse_amount(amount)

        record = self._run(self._withdraw, identity.id, value)
        log_action(
            logger, "info", "Withdrawal completed", action="withdraw",
            account_id=identity.id, extra={"transaction_id": record.id, "amount": value}
        )
        return record

    def transfer(self, amount, target_id: int) -> TransferResult:
        """
        Move money from the logged-in account to ``target_id``.

        Writes, in order: debit sender, ``transfer_out`` row, credit receiver,
        ``transfer_in`` row. Transfers to oneself are rejected.
        """
        identity = self.sessions.require()
        value = parse_amount(amount)

        if target_id == identity.id:
            raise InvalidTarget()

        result = self._run(self._transfer, identity.id, target_id, value)
        log_action(
            logger, "info", "Transfer completed", action="transfer",
            account_id=identity.id,
            extra={
                "target_id": target_id,
                "amount": value,
                "transaction_ids": [result.outgoing.id, result.incoming.id]
            }
        )
        return result

    # ---- transaction bodies (run inside atomic) ----

    def _deposit(self, account_id: int, amount: Decimal) -> TransactionRecord:
        account = self._lock(account_id)
        if account is None:
            raise AccountNotFound()

        self._credit(account_id, amount)
        return self._record(account_id, TransactionType.DEPOSIT, amount)

    def _withdraw(self, account_id: int, amount: Decimal) -> TransactionRecord:
        account = self._lock(account_id)
        if account is None:
            raise AccountNotFound()

        if amount > account.balance:
            raise InsufficientFunds()

        self._debit(account_id, amount)
        return self._record(account_id, TransactionType.WITHDRAW, amount)

    def _transfer(self, sender_id: int, receiver_id: int, amount: Decimal) -> TransferResult:
        # Lock accounts in consistent order to prevent deadlocks
        locked_accounts = {}
        for account_id in sorted([sender_id, receiver_id]):
            locked_accounts[account_id] = self._lock(account_id)

        sender = locked_accounts[sender_id]
        receiver = locked_accounts[receiver_id]

        if sender is None:
            raise AccountNotFound()
        if receiver is None:
            raise TargetNotFound()

        if amount > sender.balance:
            raise InsufficientFunds()

        sender_name, receiver_name = sender.name, receiver.name

        self._debit(sender_id, amount)
        outgoing = self._record(sender_id, TransactionType.TRANSFER_OUT, amount, target_id=receiver_id)
        self._credit(receiver_id, amount)
        incoming = self._record(receiver_id, TransactionType.TRANSFER_IN, amount, target_id=sender_id)

        return TransferResult(
            outgoing=outgoing,
            incoming=incoming,
            sender_name=sender_name,
            receiver_name=receiver_name
        )

    # ---- building blocks ----

    def _run(self, operation, *args):
        attempt = 0
        while True:
            attempt += 1
            try:
                with atomic(self.db):
                    return operation(*args)
            except ConcurrencyConflict:
                if attempt > self.max_retries:
                    raise
                log_action(
                    logger, "warning", "Concurrent balance change, retrying",
                    action="retry", extra={"attempt": attempt}
                )

    def _lock(self, account_id: int):
        # populate_existing: always take the balance from the locked row,
        # never from an earlier read cached in the session
        return self.db.query(Account).filter(
            Account.id == account_id
        ).with_for_update().populate_existing().first()

    def _credit(self, account_id: int, amount: Decimal) -> None:
        updated = self.db.query(Account).filter(
            Account.id == account_id
        ).update({Account.balance: _cents(Account.balance + amount)}, synchronize_session=False)

        if updated != 1:
            raise ConcurrencyConflict()

    def _debit(self, account_id: int, amount: Decimal) -> None:
        # The balance guard makes the debit itself refuse to go negative
        updated = self.db.query(Account).filter(
            Account.id == account_id,
            _cents(Account.balance) >= amount
        ).update({Account.balance: _cents(Account.balance - amount)}, synchronize_session=False)

        if updated != 1:
            raise ConcurrencyConflict()

    def _record(self, account_id: int, kind: TransactionType, amount: Decimal, target_id: int = None) -> TransactionRecord:
        transaction = Transaction(
            account_id=account_id,
            type=kind,
            amount=amount,
            target_id=target_id
        )
        self.db.add(transaction)
        self.db.flush()
        return TransactionRecord.model_validate(transaction)
