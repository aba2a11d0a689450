"""
Store Helpers

Translate SQLAlchemy failures on the write path into domain errors.

Every write in the service layer runs inside atomic_write(): the block's
statements are flushed and committed together, or rolled back together.
Any exception raised inside the block (domain errors included) rolls the
session back, which also releases row locks taken in it.

- IntegrityError (a unique constraint fired because a concurrent request
  inserted the same identity/target row first) → ConflictError
- OperationalError / InterfaceError (database unreachable) → StoreUnavailable

Nothing is retried here.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.orm import Session

from booknest.exceptions import ConflictError, StoreUnavailable

logger = logging.getLogger(__name__)


@contextmanager
def atomic_write(db: Session, description: str) -> Iterator[None]:
    """
    Commit the enclosed writes as one unit.

    Args:
        db: Request session
        description: Short label used in log lines and error details

    Raises:
        ConflictError: A concurrent write won the uniqueness race
        StoreUnavailable: The database could not be reached
    """
    try:
        yield
        db.flush()
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning(f"Write conflict during {description}: {exc.orig}")
        raise ConflictError(
            f"A concurrent request changed this {description}. Please retry."
        ) from exc
    except (OperationalError, InterfaceError) as exc:
        db.rollback()
        logger.error(f"Store unavailable during {description}: {exc}")
        raise StoreUnavailable("The database is temporarily unavailable.") from exc
    except BaseException:
        db.rollback()
        raise
