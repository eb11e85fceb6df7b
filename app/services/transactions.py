import time
from typing import Callable, Iterable, Optional

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from app.core.config import TX_BACKOFF_SECONDS, TX_MAX_ATTEMPTS
from app.core.logging_config import get_logger
from app.core.results import ConflictError, ServiceResult

logger = get_logger()

# Lock timeouts, serialization failures, and duplicate generated codes
RETRYABLE_ERRORS = (OperationalError, IntegrityError)


def run_in_transaction(
    db: Session,
    work: Callable[[], ServiceResult],
    operation: str,
    room_ids: Iterable[int] = (),
    max_attempts: int = TX_MAX_ATTEMPTS,
    backoff: float = TX_BACKOFF_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> ServiceResult:
    """Run ``work`` as one atomic unit.

    A successful result is committed; a failed result is rolled back so the
    store is left untouched. Retryable database errors are retried with
    exponential backoff, and once attempts run out they surface as a
    ConflictError on the requested rooms.
    """
    last_error: Optional[Exception] = None

    for attempt in range(1, max_attempts + 1):
        try:
            result = work()
            if result.is_success:
                db.commit()
            else:
                db.rollback()
            return result

        except RETRYABLE_ERRORS as e:
            db.rollback()
            last_error = e
            logger.warning(
                f"TX RETRY | {operation} | attempt={attempt}/{max_attempts} | {type(e).__name__}: {e}"
            )
            if attempt < max_attempts:
                sleep(backoff * (2 ** (attempt - 1)))

        except Exception:
            db.rollback()
            raise

    logger.error(f"TX GAVE UP | {operation} | {type(last_error).__name__}")
    return ServiceResult.failure(
        ConflictError(
            message=f"Could not complete {operation} under concurrent access; please retry",
            conflicting_room_ids=frozenset(room_ids),
        )
    )
