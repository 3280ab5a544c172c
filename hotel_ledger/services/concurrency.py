"""
Unit-of-work helpers for ledger writes.

Invoice and Vendor rows are versioned (``version_id_col``), so a write
that lost a race fails at flush time with ``StaleDataError``. These
helpers translate that into ``ConcurrentModification`` and, for callers
that own their session, re-run the whole unit of work.
"""
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from hotel_ledger.config import settings
from hotel_ledger.core.exceptions import ConcurrentModification, PersistenceFailure


logger = logging.getLogger(__name__)

T = TypeVar("T")


async def flush_changes(db: AsyncSession, operation: str) -> None:
    """Flush pending ledger writes, classifying store errors."""
    try:
        await db.flush()
    except StaleDataError as e:
        logger.warning(f"Concurrent modification during {operation}: {e}")
        raise ConcurrentModification(
            f"Record was modified by another request during {operation}, please retry"
        )
    except SQLAlchemyError as e:
        logger.error(f"Persistence failure during {operation}: {e}")
        raise PersistenceFailure(
            f"Could not save {operation}",
            details={"error": str(e)},
        )


async def run_with_retry(
    session_factory: async_sessionmaker,
    operation: Callable[[AsyncSession], Awaitable[T]],
    attempts: Optional[int] = None,
) -> T:
    """
    Run ``operation(session)`` in a fresh session and commit it.

    On a version conflict the session is rolled back and the operation is
    re-run from scratch, up to ``attempts`` times. Any other error rolls
    back and propagates immediately.
    """
    attempts = attempts or settings.CONFLICT_RETRY_ATTEMPTS
    last_error: Optional[ConcurrentModification] = None

    for attempt in range(1, attempts + 1):
        async with session_factory() as session:
            try:
                result = await operation(session)
                await session.commit()
                return result
            except StaleDataError as e:
                await session.rollback()
                last_error = ConcurrentModification(str(e))
            except ConcurrentModification as e:
                await session.rollback()
                last_error = e
            except Exception:
                await session.rollback()
                raise

        logger.warning(f"Version conflict on attempt {attempt}/{attempts}, retrying")

    raise last_error
