"""
Database decorators for contention handling.

Provides a decorator that re-runs a whole unit of work when the
database aborts it because of a serialization failure, deadlock or
lock timeout.
"""

import asyncio
import random
from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.exc import DBAPIError

from affiliate_engine.config.settings import settings
from affiliate_engine.utils.exceptions import (
    ConcurrencyConflictError,
    is_concurrency_conflict,
)


T = TypeVar("T")


def with_conflict_retry(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator that retries a service method on transaction contention.

    Usage:
        class MyService(BaseService):
            @with_conflict_retry
            async def my_method(self, ...):
                # one complete unit of work, committed inside
                ...

    The decorator will:
    1. Execute the wrapped method
    2. If the database aborted the transaction due to contention,
       roll back self.session and run the method again after an
       exponential backoff with jitter
    3. After settings.max_conflict_retries attempts, raise
       ConcurrencyConflictError
    4. Re-raise any other exception untouched

    The wrapped method must be safe to re-run from the start: it has to
    read all state it depends on inside the unit of work.

    Args:
        func: Async method of an object exposing a ``session`` attribute

    Returns:
        Wrapped method with bounded retry
    """
    @wraps(func)
    async def wrapper(self: Any, *args: Any, **kwargs: Any) -> T:
        attempts = settings.max_conflict_retries

        for attempt in range(attempts):
            try:
                return await func(self, *args, **kwargs)
            except DBAPIError as e:
                if not is_concurrency_conflict(e):
                    raise

                await self.session.rollback()

                if attempt < attempts - 1:
                    delay = settings.retry_delay_base * (2 ** attempt) + random.uniform(
                        0, settings.retry_delay_base
                    )
                    logger.warning(
                        f"Contention in {func.__name__}, retrying",
                        extra={
                            "function": func.__name__,
                            "attempt": attempt + 1,
                            "delay_seconds": round(delay, 3),
                            "error_type": type(e).__name__,
                        },
                    )
                    await asyncio.sleep(delay)
                    continue

                logger.error(
                    f"Contention in {func.__name__}, giving up",
                    extra={
                        "function": func.__name__,
                        "attempts": attempts,
                        "error_code": ConcurrencyConflictError.error_code,
                    },
                )
                raise ConcurrencyConflictError(func.__name__, attempts) from e

        # attempts >= 1 is enforced by settings validation
        raise ConcurrencyConflictError(func.__name__, attempts)

    return wrapper
