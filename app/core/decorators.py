import functools
import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def _find_session(args: tuple, kwargs: dict) -> Optional[Session]:
    db = kwargs.get("db")
    if isinstance(db, Session):
        return db
    return next((arg for arg in args if isinstance(arg, Session)), None)


def best_effort(stage: str):
    """Run an async stage whose failure must not affect the caller.

    Any exception is logged with its traceback, the session's pending state is
    rolled back (work committed by earlier stages is untouched) and ``None``
    is returned in place of the stage result.
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except Exception as exc:
                db = _find_session(args, kwargs)
                if db is not None:
                    try:
                        db.rollback()
                    except Exception:
                        logger.exception(f"Rollback after failed stage '{stage}' also failed")
                logger.error(f"Best-effort stage '{stage}' failed: {exc}", exc_info=True)
                return None
        return wrapper
    return decorator
