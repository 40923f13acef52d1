"""Example script demonstrating Strudel MCP error recovery."""

import asyncio
import logging
import random

from strudelmcp.logging_config import configure_logging
from strudelmcp.resilience import ErrorRecovery

configure_logging()
logger = logging.getLogger(__name__)


async def flaky_write(pattern: str) -> str:
    """Pretend editor write that rejects effect-heavy patterns."""
    await asyncio.sleep(0.01)
    if ".room(" in pattern or random.random() < 0.3:
        raise RuntimeError("Editor rejected pattern")
    return f"Pattern written: {pattern}"


async def start_browser() -> str:
    await asyncio.sleep(0.01)
    return "Browser ready"


async def main():
    """Run a short recovery demonstration."""
    recovery = ErrorRecovery()

    logger.info(await recovery.handle_browser_init(start_browser))

    pattern = 's("bd*4").delay(0.5).room(0.8).sometimes(x => x.fast(2))'
    try:
        logger.info(await recovery.handle_pattern_write(flaky_write, pattern))
    except Exception as e:
        logger.error(f"Pattern write failed: {e}")

    logger.info(f"Diagnostics: {recovery.get_diagnostics()}")


if __name__ == "__main__":
    asyncio.run(main())
