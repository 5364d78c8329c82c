"""
Database connection and session management.
Uses SQLAlchemy for ORM and connection pooling.
"""

from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError, TimeoutError as PoolTimeoutError
from sqlalchemy.orm import declarative_base, sessionmaker

from atm.core.config import settings
from atm.core.errors import StoreUnavailable


def _connect_args(url: str) -> dict:
    # sqlite3 names its lock wait "timeout"; network drivers take "connect_timeout"
    if url.startswith("sqlite"):
        return {"timeout": settings.DB_TIMEOUT}
    return {"connect_timeout": settings.DB_TIMEOUT}


# Create database engine
# Connections are opened lazily, on the first statement of an invocation
engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DB_ECHO,
    pool_pre_ping=True,  # Verify connections before using
    connect_args=_connect_args(settings.DATABASE_URL)
)

# Create session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)

# Base class for models
Base = declarative_base()


@contextmanager
def get_db():
    """
    Scoped database session for a single CLI invocation.
    Yields session and ensures it's closed (connection released) after use,
    whether the command succeeded or failed.

    Usage:
        with get_db() as db:
            # Use db here
            pass
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db):
    """
    Run a block of statements as one database transaction.

    Commits when the block finishes, rolls back every write on any error.
    Connection loss, lock waits and pool timeouts surface as StoreUnavailable.
    """
    try:
        yield db
        db.commit()
    except (OperationalError, PoolTimeoutError) as e:
        db.rollback()
        raise StoreUnavailable(f"The bank database is unavailable: {getattr(e, 'orig', None) or e}") from e
    except Exception:
        db.rollback()
        raise
