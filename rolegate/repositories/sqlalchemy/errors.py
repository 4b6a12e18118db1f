import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rolegate.services.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)


@contextmanager
def translate_store_errors(db: Session, store: str, operation: str):
    """SQLAlchemy 예외를 롤백 후 StoreUnavailableError로 변환합니다."""
    try:
        yield
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("%s.%s failed: %s", store, operation, e)
        raise StoreUnavailableError(f"{store} unavailable during '{operation}'.") from e
