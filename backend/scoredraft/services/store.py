from typing import Callable, Optional, TypeVar

from flask import current_app
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from scoredraft import db
from scoredraft.errors import GameError, TransientStoreError

T = TypeVar('T')

# Conflicts that mean "someone else committed first": re-read and try again.
RETRYABLE_ERRORS = (StaleDataError, IntegrityError, OperationalError)

UNIQUE_VIOLATION = '23505'


def is_write_conflict(exc: Exception) -> bool:
    """Only unique-constraint violations count as lost races; NOT NULL or FK failures are bugs."""
    if not isinstance(exc, IntegrityError):
        return True
    sqlstate = getattr(exc.orig, 'pgcode', None) or getattr(exc.orig, 'sqlstate', None)
    if sqlstate:
        return sqlstate == UNIQUE_VIOLATION
    return 'unique' in str(exc.orig).lower()


def run_transaction(work: Callable[[], T], label: str = 'tx', max_attempts: Optional[int] = None) -> T:
    """Run ``work`` and commit it as one atomic unit.

    ``work`` must do all of its reads through ``db.session`` and must not
    commit. On a write conflict the transaction is rolled back and ``work``
    runs again from a fresh read, so a losing caller sees the winner's state
    and fails with the matching business error. Domain errors roll back and
    propagate untouched.
    """
    if max_attempts is None:
        max_attempts = int(current_app.config.get('TX_MAX_ATTEMPTS', 3))
    attempt = 0
    while True:
        attempt += 1
        try:
            result = work()
            db.session.commit()
            return result
        except GameError as exc:
            db.session.rollback()
            current_app.logger.info(f"[rejected] {label} {exc.code}: {exc.message}")
            raise
        except RETRYABLE_ERRORS as exc:
            db.session.rollback()
            if not is_write_conflict(exc):
                current_app.logger.error(f"[tx-error] {label} integrity violation: {exc.orig}")
                raise
            if attempt >= max_attempts:
                current_app.logger.error(f"[tx-failed] {label} gave up after {attempt} attempts: {exc.__class__.__name__}")
                raise TransientStoreError() from exc
            current_app.logger.warning(f"[tx-retry] {label} attempt={attempt} conflict={exc.__class__.__name__}")
        except Exception:
            db.session.rollback()
            raise
