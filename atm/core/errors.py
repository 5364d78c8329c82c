"""
Error kinds raised by the ATM core.

Every error carries a machine-readable ``kind`` and a distinct process
``exit_code`` so the CLI (and tests) can branch on cause instead of text.
"""


class AtmError(Exception):
    """Base class for all ATM errors."""

    kind = "atm_error"
    exit_code = 1
    retryable = False
    default_message = "ATM operation failed"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotAuthenticated(AtmError):
    kind = "not_authenticated"
    exit_code = 3
    default_message = "Transaction declined. You are not logged in yet!"


class AccountNotFound(AtmError):
    kind = "account_not_found"
    exit_code = 4
    default_message = "Your account no longer exists. Please log in again."


class InvalidAmount(AtmError):
    kind = "invalid_amount"
    exit_code = 5
    default_message = "Invalid money input format. Please enter a positive number."


class InsufficientFunds(AtmError):
    kind = "insufficient_funds"
    exit_code = 6
    default_message = "Transaction declined. Not enough balance."


class TargetNotFound(AtmError):
    kind = "target_not_found"
    exit_code = 7
    default_message = "The target account with that id doesn't exist!"


class InvalidTarget(AtmError):
    kind = "invalid_target"
    exit_code = 8
    default_message = "Cannot transfer to the same account."


class InvalidCredentials(AtmError):
    kind = "invalid_credentials"
    exit_code = 9
    default_message = "Invalid name or PIN"


class LockedOut(AtmError):
    kind = "locked_out"
    exit_code = 10
    default_message = (
        "Account locked due to multiple failed login attempts. Please try again later."
    )


class StoreUnavailable(AtmError):
    kind = "store_unavailable"
    exit_code = 11
    retryable = True
    default_message = "The bank database is unavailable. Please try again."


class ConcurrencyConflict(AtmError):
    kind = "concurrency_conflict"
    exit_code = 12
    retryable = True
    default_message = "The account was modified concurrently. Please try again."


class InvalidRegistration(AtmError):
    kind = "invalid_registration"
    exit_code = 13
    default_message = "PIN should be exactly a 6-digit numeric string."


class AccountExists(AtmError):
    kind = "account_exists"
    exit_code = 14
    default_message = "An account with that name already exists."
