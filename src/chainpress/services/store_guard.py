"""Retry-once wrapper for identity and content store calls.

Calls run inline on the caller's session. The time bound is enforced by the
database driver (see :func:`chainpress.db.session.build_connect_args`), which
surfaces an expired wait as ``OperationalError`` with the work rolled back.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TypeVar

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from chainpress.core.errors import IdentityStoreUnavailableError
from chainpress.core.settings import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


def guarded_call(
    fn: Callable[[], T],
    *,
    session: Session | None = None,
    retries: int = 1,
    backoff: float | None = None,
) -> T:
    """Run ``fn`` with at most ``retries`` extra attempts on ``OperationalError``.

    ``session`` is rolled back after every failed attempt, so nothing ``fn``
    flushed survives a failure. Pass ``retries=0`` when ``fn`` is one step of
    a larger unit of work that the rollback would also discard.

    Raises:
        IdentityStoreUnavailableError: When the last attempt fails.
    """
    backoff = settings.store_retry_backoff_seconds if backoff is None else backoff

    attempt = 0
    while True:
        try:
            return fn()
        except OperationalError as err:
            if session is not None:
                session.rollback()
            if attempt >= retries:
                logger.error("Store call failed after %d attempt(s): %s", attempt + 1, err)
                raise IdentityStoreUnavailableError("Store unavailable") from err
            attempt += 1
            logger.warning("Store call failed, retrying in %.2fs: %s", backoff, err)
            time.sleep(backoff * attempt)
