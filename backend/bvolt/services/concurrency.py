# Overview: Transaction and locking primitives shared by the service layer.

from __future__ import annotations

from contextlib import contextmanager

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from ..errors import integrity_error_to_api_error


# Key for the transaction-scoped advisory lock that serializes sale numbering
SALE_NUMBERING_LOCK_KEY = 7_305_001


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def lock_sale_numbering(session) -> None:
    """
    Serialize MAX(sequence_number)+1 allocation across concurrent transactions.

    PostgreSQL only; the lock is released at COMMIT/ROLLBACK. On other
    backends the unique constraint on sales.sequence_number is the guard.
    """
    if session.get_bind().dialect.name == "postgresql":
        session.execute(
            text("SELECT pg_advisory_xact_lock(:key)"),
            {"key": SALE_NUMBERING_LOCK_KEY},
        )


@contextmanager
def transaction(session):
    """
    Unit of work over an explicitly passed session.

    Commits when the block exits normally. Any exception rolls back every
    write made inside the block before propagating; IntegrityError is
    translated into the API error taxonomy.
    """
    try:
        yield session
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise integrity_error_to_api_error(exc) from exc
    except BaseException:
        session.rollback()
        raise
