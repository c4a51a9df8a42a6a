"""Named timers for worker operations."""

import logging
import time
from contextlib import contextmanager
from typing import Iterator

logger = logging.getLogger(__name__)


@contextmanager
def benchmark(name: str) -> Iterator[None]:
    """
    Log how long the wrapped block took.

    Purely observational: exceptions raised inside the block propagate
    unchanged, and the elapsed time is logged either way.

    Usage:
        with benchmark("SharedCache.materialize(org/app.git, abc123)"):
            ...
    """
    start = time.perf_counter()
    failed = False
    try:
        yield
    except BaseException:
        failed = True
        raise
    finally:
        elapsed = time.perf_counter() - start
        suffix = " (failed)" if failed else ""
        logger.info(f"{name} finished in {elapsed:.3f}s{suffix}")
