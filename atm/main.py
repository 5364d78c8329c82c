"""
Main CLI entry point.
Sets up the argument parser, logging and the commands of the virtual ATM.
"""

import argparse
import getpass
import sys
from typing import List, Optional

from sqlalchemy import text

from atm.core.config import settings
from atm.core.errors import AtmError
from atm.core.logging_config import setup_logging
from atm.database import atomic, engine, get_db
from atm.services.accounts import get_balance, register_account
from atm.services.auth import Authenticator, LoginAttemptTracker
from atm.services.credentials import CredentialService
from atm.services.session import FileSessionStore
from atm.services.transactions import TransactionEngine

# Lives as long as the process, like the failed-login counter it holds
login_attempts = LoginAttemptTracker()


def read_pin(prompt: str = "Enter PIN: ") -> str:
    """Prompt for the PIN without echoing it."""
    return getpass.getpass(prompt)


def print_table(rows: List[dict]) -> None:
    """Print rows of equal keys as an aligned text table."""
    columns = list(rows[0].keys())
    cells = [[str(row[column]) for column in columns] for row in rows]
    widths = [
        max(len(column), *(len(line[i]) for line in cells))
        for i, column in enumerate(columns)
    ]
    print("  ".join(column.ljust(width) for column, width in zip(columns, widths)))
    print("  ".join("-" * width for width in widths))
    for line in cells:
        print("  ".join(cell.ljust(width) for cell, width in zip(line, widths)))


def _transaction_row(record, **extra) -> dict:
    row = {
        "transaction_id": record.id,
        "type": record.type.value,
        "amount": record.amount,
    }
    row.update(extra)
    row["created_at"] = record.created_at.isoformat(sep=" ", timespec="seconds")
    return row


# ==================== COMMANDS ====================

def cmd_register(args, db) -> None:
    register_account(db, CredentialService(), args.name, read_pin())
    print("Your new account was created successfully!")


def cmd_login(args, db) -> None:
    authenticator = Authenticator(db, CredentialService(), FileSessionStore(), login_attempts)
    account = authenticator.login(args.name, read_pin())
    print_table([{"id": account.id, "name": account.name, "balance": account.balance}])
    print("Login successful!")


def cmd_logout(args, db) -> None:
    FileSessionStore().clear()
    print("You have been logged out.")


def cmd_check_balance(args, db) -> None:
    account = get_balance(db, FileSessionStore())
    print_table([{"id": account.id, "name": account.name, "balance": account.balance}])


def cmd_deposit(args, db) -> None:
    record = TransactionEngine(db, FileSessionStore()).deposit(args.amount)
    print_table([_transaction_row(record)])
    print("Your money was added successfully!")


def cmd_withdraw(args, db) -> None:
    record = TransactionEngine(db, FileSessionStore()).withdraw(args.amount)
    print_table([_transaction_row(record)])
    print("Your money was taken out successfully!")


def cmd_transfer(args, db) -> None:
    result = TransactionEngine(db, FileSessionStore()).transfer(args.amount, args.to)
    print_table([_transaction_row(
        result.outgoing,
        receiver_id=result.outgoing.target_id,
        receiver_name=result.receiver_name
    )])
    print_table([_transaction_row(
        result.incoming,
        sender_id=result.incoming.target_id,
        sender_name=result.sender_name
    )])
    print("Your money was transferred out successfully!")


def cmd_ping(args, db) -> None:
    with atomic(db):
        db.execute(text("SELECT 1"))
    print("Connection successful!")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=settings.PROJECT_NAME, description=settings.DESCRIPTION)
    parser.add_argument("--version", action="version", version=f"%(prog)s {settings.VERSION}")
    commands = parser.add_subparsers(dest="command", metavar="<command>", required=True)

    register = commands.add_parser("register", help="Register a new account")
    register.add_argument("-n", "--name", required=True, help="Name (required)")
    register.set_defaults(handler=cmd_register, title="Register")

    login = commands.add_parser("login", help="Login into your account")
    login.add_argument("-n", "--name", required=True, help="Name (required)")
    login.set_defaults(handler=cmd_login, title="Login")

    logout = commands.add_parser("logout", help="Forget the saved session")
    logout.set_defaults(handler=cmd_logout, title="Logout")

    check = commands.add_parser("check-balance", help="Check your current balance")
    check.set_defaults(handler=cmd_check_balance, title="Check Balance")

    deposit = commands.add_parser("deposit", help="Put money into your account")
    deposit.add_argument("amount")
    deposit.set_defaults(handler=cmd_deposit, title="Deposit")

    withdraw = commands.add_parser("withdraw", help="Take money out of your account")
    withdraw.add_argument("amount")
    withdraw.set_defaults(handler=cmd_withdraw, title="Withdraw")

    transfer = commands.add_parser("transfer", help="Transfer amount of money into an account by id")
    transfer.add_argument("amount")
    transfer.add_argument("-t", "--to", required=True, type=int, metavar="TARGET_ACCOUNT_ID",
                          help="Target account id")
    transfer.set_defaults(handler=cmd_transfer, title="Transfer")

    ping = commands.add_parser("ping", help="Test the database connection")
    ping.set_defaults(handler=cmd_ping, title="Connection")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run one ATM command and return the process exit code.

    Each error kind has its own exit code (see atm.core.errors); anything
    unexpected exits with 1.
    """
    args = build_parser().parse_args(argv)
    setup_logging(settings.LOG_LEVEL)

    try:
        with get_db() as db:
            args.handler(args, db)
    except AtmError as e:
        print(f"{args.title} Error: {e.message}", file=sys.stderr)
        return e.exit_code
    finally:
        engine.dispose()

    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
