"""Fallback actions for the Strudel controller's failing operations.

Provides:
- A descriptive result instead of an error when the browser cannot start
- A simplified-pattern write when the full pattern keeps failing
"""

import logging
from typing import Awaitable, Callable

from .simplifier import simplify_pattern

logger = logging.getLogger(__name__)


BROWSER_INIT_FALLBACK_MESSAGE = (
    "Browser initialization failed. Try setting headless:true in config.json"
)


async def browser_init_fallback() -> str:
    """Degrade a failed browser start to a configuration hint."""
    logger.warning("Browser initialization failed, suggesting headless mode")
    return BROWSER_INIT_FALLBACK_MESSAGE


def simplified_write_fallback(
    write_fn: Callable[[str], Awaitable[str]],
    pattern: str,
) -> Callable[[], Awaitable[str]]:
    """Build a fallback that writes a simplified version of `pattern` once.

    Args:
        write_fn: Pattern write routine
        pattern: Pattern whose full version kept failing

    Returns:
        Zero-argument fallback action; its failure propagates to the caller
    """

    async def write_simplified() -> str:
        simplified = simplify_pattern(pattern)
        logger.info("Attempting to write simplified pattern")
        return await write_fn(simplified)

    return write_simplified
