import time
from contextlib import asynccontextmanager

import structlog

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def performance_timer(operation: str):
    """Log how long ``operation`` took"""
    start = time.time()
    try:
        yield
    finally:
        duration = time.time() - start
        logger.info("operation_completed", operation=operation, duration_seconds=round(duration, 2))
