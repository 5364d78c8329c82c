"""
Authentication tests.
Tests PIN hashing, registration, login, lockout and balance inquiry.
"""

import pytest
from decimal import Decimal
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from atm.core.errors import (
    AccountExists,
    AccountNotFound,
    InvalidCredentials,
    InvalidRegistration,
    LockedOut,
    NotAuthenticated,
)
from atm.database import Base
from atm.models.account import Account
from atm.schemas.session import SessionIdentity
from atm.services.accounts import get_balance, register_account
from atm.services.auth import Authenticator, LoginAttemptTracker
from atm.services.credentials import CredentialService
from atm.services.session import FileSessionStore

SQLALCHEMY_DATABASE_URL = "sqlite://"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Minimum bcrypt cost keeps the suite fast
credentials = CredentialService(rounds=4)


@pytest.fixture(autouse=True)
def setup_database():
    """Create fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sessions(tmp_path):
    return FileSessionStore(tmp_path / "session.json")


@pytest.fixture
def tracker():
    return LoginAttemptTracker(max_attempts=3)


@pytest.fixture
def authenticator(db, sessions, tracker):
    return Authenticator(db, credentials, sessions, tracker)


# ==================== CREDENTIAL SERVICE ====================

def test_hash_and_verify():
    pin_hash = credentials.hash("123456")

    assert pin_hash != "123456"
    assert pin_hash.startswith("$2")
    assert credentials.verify("123456", pin_hash)
    assert not credentials.verify("654321", pin_hash)


def test_equal_pins_get_different_hashes():
    assert credentials.hash("123456") != credentials.hash("123456")


def test_rounds_default_from_settings():
    assert CredentialService().rounds == 10


def test_explicit_rounds_are_kept():
    assert CredentialService(rounds=4).rounds == 4
    assert CredentialService(rounds=0).rounds == 0


# ==================== REGISTRATION ====================

def test_register_account(db):
    account = register_account(db, credentials, "alice", "123456")

    assert account.name == "alice"
    assert account.balance == Decimal("0.00")

    stored = db.query(Account).filter(Account.id == account.id).one()
    assert stored.pin_hash != "123456"
    assert credentials.verify("123456", stored.pin_hash)


def test_register_duplicate_name(db):
    register_account(db, credentials, "alice", "123456")

    with pytest.raises(AccountExists) as excinfo:
        register_account(db, credentials, "alice", "654321")

    assert "already exists" in excinfo.value.message
    assert db.query(Account).count() == 1


@pytest.mark.parametrize("pin", ["12345", "1234567", "abcdef", "12 456", "", "١٢٣٤٥٦"])
def test_register_rejects_bad_pin(db, pin):
    with pytest.raises(InvalidRegistration):
        register_account(db, credentials, "alice", pin)

    assert db.query(Account).count() == 0


def test_register_rejects_empty_name(db):
    with pytest.raises(InvalidRegistration) as excinfo:
        register_account(db, credentials, "   ", "123456")

    assert "Name" in excinfo.value.message


# ==================== LOGIN ====================

def test_login_success_saves_session(db, sessions, authenticator):
    created = register_account(db, credentials, "alice", "123456")

    account = authenticator.login("alice", "123456")

    assert account.id == created.id
    assert account.name == "alice"
    assert account.balance == Decimal("0.00")
    assert sessions.load() == SessionIdentity(id=created.id, name="alice")


def test_login_wrong_pin(db, sessions, authenticator):
    register_account(db, credentials, "alice", "123456")

    with pytest.raises(InvalidCredentials):
        authenticator.login("alice", "000000")

    assert sessions.load() is None


def test_login_unknown_name_looks_like_wrong_pin(db, authenticator):
    register_account(db, credentials, "alice", "123456")

    with pytest.raises(InvalidCredentials) as unknown:
        authenticator.login("mallory", "123456")
    with pytest.raises(InvalidCredentials) as wrong_pin:
        authenticator.login("alice", "000000")

    assert unknown.value.message == wrong_pin.value.message


def test_login_strips_whitespace_like_registration(db, sessions, authenticator):
    created = register_account(db, credentials, "alice ", "123456 ")

    account = authenticator.login("alice ", "123456 ")

    assert account.id == created.id
    assert account.name == "alice"
    assert sessions.load() == SessionIdentity(id=created.id, name="alice")


class CountingCredentials(CredentialService):
    def __init__(self):
        super().__init__(rounds=4)
        self.checks = 0

    def verify(self, pin, pin_hash):
        self.checks += 1
        return super().verify(pin, pin_hash)


@pytest.mark.parametrize("name, pin", [("mallory", "123456"), ("alice", "12ab56")])
def test_failed_login_always_runs_one_bcrypt_check(db, sessions, tracker, name, pin):
    register_account(db, credentials, "alice", "123456")
    counting = CountingCredentials()
    authenticator = Authenticator(db, counting, sessions, tracker)

    with pytest.raises(InvalidCredentials):
        authenticator.login(name, pin)

    assert counting.checks == 1


def test_login_malformed_pin_counts_as_failure(db, authenticator, tracker):
    register_account(db, credentials, "alice", "123456")

    with pytest.raises(InvalidCredentials):
        authenticator.login("alice", "x" * 100)

    assert tracker.failures("alice") == 1


def test_lockout_after_three_failures(db, authenticator):
    """The 4th attempt fails with LockedOut even with the right PIN."""
    register_account(db, credentials, "alice", "123456")

    for _ in range(3):
        with pytest.raises(InvalidCredentials):
            authenticator.login("alice", "000000")

    with pytest.raises(LockedOut):
        authenticator.login("alice", "123456")


def test_lockout_does_not_touch_store(db, authenticator):
    for _ in range(3):
        with pytest.raises(InvalidCredentials):
            authenticator.login("ghost", "000000")

    # Any query now would fail with StoreUnavailable instead
    Base.metadata.drop_all(bind=engine)

    with pytest.raises(LockedOut):
        authenticator.login("ghost", "000000")


def test_successful_login_resets_counter(db, authenticator, tracker):
    register_account(db, credentials, "alice", "123456")

    for _ in range(2):
        with pytest.raises(InvalidCredentials):
            authenticator.login("alice", "000000")

    authenticator.login("alice", "123456")
    assert tracker.failures("alice") == 0

    for _ in range(2):
        with pytest.raises(InvalidCredentials):
            authenticator.login("alice", "000000")

    authenticator.login("alice", "123456")


def test_tracker_states():
    tracker = LoginAttemptTracker(max_attempts=3)

    assert not tracker.is_locked("alice")
    assert tracker.record_failure("alice") == 1
    assert tracker.record_failure("alice") == 2
    assert not tracker.is_locked("alice")
    assert tracker.record_failure("alice") == 3
    assert tracker.is_locked("alice")
    assert not tracker.is_locked("bob")

    tracker.reset("alice")
    assert not tracker.is_locked("alice")


def test_tracker_zero_attempts_locks_immediately():
    tracker = LoginAttemptTracker(max_attempts=0)

    assert tracker.max_attempts == 0
    assert tracker.is_locked("alice")


# ==================== BALANCE ====================

def test_get_balance(db, sessions):
    account = register_account(db, credentials, "alice", "123456")
    sessions.save(SessionIdentity(id=account.id, name="alice"))

    balance = get_balance(db, sessions)

    assert balance.id == account.id
    assert balance.balance == Decimal("0.00")


def test_get_balance_requires_session(db, sessions):
    with pytest.raises(NotAuthenticated):
        get_balance(db, sessions)


def test_get_balance_for_vanished_account(db, sessions):
    sessions.save(SessionIdentity(id=404, name="ghost"))

    with pytest.raises(AccountNotFound):
        get_balance(db, sessions)
