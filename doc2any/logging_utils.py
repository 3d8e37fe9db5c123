"""Timing helpers that log pipeline work at DEBUG level."""

import functools
import logging
import time
from contextlib import contextmanager
from typing import Any, Callable, Dict, Generator, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def log_timing(func: Callable[..., T]) -> Callable[..., T]:
    """Log entry, exit and elapsed time of a codec call.

    Failures are logged with their elapsed time and re-raised untouched.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        start_time = time.perf_counter()
        logger.debug("Entering %s", func.__qualname__)
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            logger.debug(
                "Failed %s after %.4f seconds: %s",
                func.__qualname__,
                time.perf_counter() - start_time,
                e,
            )
            raise
        logger.debug(
            "Exiting %s | Elapsed: %.4f seconds",
            func.__qualname__,
            time.perf_counter() - start_time,
        )
        return result

    return wrapper


@contextmanager
def log_block_timing(
    name: str, timings: Optional[Dict[str, float]] = None
) -> Generator[None, None, None]:
    """Time a pipeline stage.

    Args:
        name: Stage name for logging
        timings: Optional mapping that receives the elapsed seconds under ``name``
    """
    start_time = time.perf_counter()
    logger.debug("Starting stage: %s", name)
    try:
        yield
    finally:
        elapsed_time = time.perf_counter() - start_time
        if timings is not None:
            timings[name] = elapsed_time
        logger.debug("Finished stage: %s | Elapsed: %.4f seconds", name, elapsed_time)
