"""
Account registration and balance inquiry.
"""

import logging
from decimal import Decimal

from pydantic import ValidationError
from sqlalchemy.orm import Session

from atm.core.errors import AccountExists, AccountNotFound, InvalidRegistration
from atm.core.logging_config import log_action
from atm.database import atomic
from atm.models.account import Account
from atm.schemas.account import AccountPublic, RegisterRequest
from atm.services.credentials import CredentialService
from atm.services.session import FileSessionStore

logger = logging.getLogger(__name__)


def register_account(db: Session, credentials: CredentialService, name: str, pin: str) -> AccountPublic:
    """
    Create a new account with a zero balance.

    - **name**: login handle, must not already be taken
    - **pin**: exactly 6 ASCII digits; only its bcrypt hash is stored
    """
    try:
        request = RegisterRequest(name=name, pin=pin)
    except ValidationError as e:
        field = e.errors()[0]["loc"][0]
        if field == "pin":
            raise InvalidRegistration() from None
        raise InvalidRegistration("Name must be between 1 and 100 characters.") from None

    with atomic(db):
        existing_account = db.query(Account).filter(Account.name == request.name).first()
        if existing_account:
            raise AccountExists(f"An account named {request.name} already exists.")

        new_account = Account(
            name=request.name,
            pin_hash=credentials.hash(request.pin),
            balance=Decimal("0.00")
        )
        db.add(new_account)
        db.flush()
        account = AccountPublic.model_validate(new_account)

    log_action(logger, "info", "Account registered", action="register", account_id=account.id)
    return account


def get_balance(db: Session, sessions: FileSessionStore) -> AccountPublic:
    """
    Current balance of the logged-in account.
    """
    identity = sessions.require()

    with atomic(db):
        account = db.query(Account).filter(Account.id == identity.id).first()
        if not account:
            raise AccountNotFound()
        return AccountPublic.model_validate(account)
