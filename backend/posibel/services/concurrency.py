# Overview: Transaction boundary and retry helpers shared by services and routes.

from __future__ import annotations

import time
from contextlib import contextmanager

from sqlalchemy.exc import OperationalError

_IN_TRANSACTION = "posibel.in_transaction"


@contextmanager
def transaction(session):
    """
    Run a block as one unit of work: commit on success, roll back on error.

    A nested `with transaction(...)` on the same session joins the outer
    unit: it neither commits nor rolls back, and any error propagates to the
    outermost block, which rolls everything back. The original exception is
    always re-raised.
    """
    if session.info.get(_IN_TRANSACTION):
        yield session
        return

    session.info[_IN_TRANSACTION] = True
    try:
        yield session
        session.commit()
    except BaseException:
        session.rollback()
        raise
    finally:
        session.info.pop(_IN_TRANSACTION, None)


def run_with_retry(func, *, session, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB unit of work with retry on transient store failures.

    Retries on OperationalError (deadlocks, lock and statement timeouts).
    The session is rolled back before every retry, so `func` must be the
    whole unit (typically a function wrapping `with transaction(session)`).
    """
    for attempt in range(attempts):
        try:
            return func()
        except OperationalError:
            session.rollback()
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
