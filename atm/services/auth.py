"""
Login and lockout.
"""

import logging
import re
from typing import Dict

from sqlalchemy.orm import Session

from atm.core.config import settings
from atm.core.errors import InvalidCredentials, LockedOut
from atm.core.logging_config import log_action
from atm.database import atomic
from atm.models.account import Account
from atm.schemas.account import AccountPublic
from atm.schemas.session import SessionIdentity
from atm.services.credentials import CredentialService
from atm.services.session import FileSessionStore

logger = logging.getLogger(__name__)

PIN_FORMAT = re.compile(r"[0-9]{6}")


class LoginAttemptTracker:
    """
    Counts consecutive failed logins per name.

    A name is locked once its count reaches ``max_attempts`` and stays locked
    for the lifetime of the tracker. A successful login resets the count.
    """

    def __init__(self, max_attempts: int = None):
        self.max_attempts = max_attempts if max_attempts is not None else settings.MAX_LOGIN_ATTEMPTS
        self._failures: Dict[str, int] = {}

    def failures(self, name: str) -> int:
        return self._failures.get(name, 0)

    def is_locked(self, name: str) -> bool:
        return self.failures(name) >= self.max_attempts

    def record_failure(self, name: str) -> int:
        self._failures[name] = self.failures(name) + 1
        return self._failures[name]

    def reset(self, name: str) -> None:
        self._failures.pop(name, None)


class Authenticator:
    """
    Verifies a name/PIN pair and, on success, persists the session.

    Failures for an unknown name and for a wrong PIN are indistinguishable
    to the caller.
    """

    def __init__(
        self,
        db: Session,
        credentials: CredentialService,
        sessions: FileSessionStore,
        tracker: LoginAttemptTracker
    ):
        self.db = db
        self.credentials = credentials
        self.sessions = sessions
        self.tracker = tracker

    def login(self, name: str, pin: str) -> AccountPublic:
        # Registration strips surrounding whitespace; login must match it
        name = (name or "").strip()
        pin = (pin or "").strip()

        if self.tracker.is_locked(name):
            log_action(logger, "warning", "Login rejected, name is locked out", action="login_locked")
            raise LockedOut()

        with atomic(self.db):
            account = self.db.query(Account).filter(Account.name == name).first()
            public = AccountPublic.model_validate(account) if account else None
            pin_hash = account.pin_hash if account else None

        if public is None or not PIN_FORMAT.fullmatch(pin):
            # Unknown names cost one bcrypt check too, so timing matches a wrong PIN
            self.credentials.verify_placeholder()
            self._fail(name, public.id if public else None)

        if not self.credentials.verify(pin, pin_hash):
            self._fail(name, public.id)

        self.tracker.reset(name)
        self.sessions.save(SessionIdentity(id=public.id, name=public.name))
        log_action(logger, "info", "Login successful", action="login", account_id=public.id)

        return public

    def _fail(self, name: str, account_id: int = None):
        attempts = self.tracker.record_failure(name)
        log_action(
            logger, "warning", "Login failed", action="login_failed",
            account_id=account_id, extra={"attempts": attempts}
        )
        raise InvalidCredentials()
