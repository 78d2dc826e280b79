"""
Logging setup.

Configures loguru sinks for the engine.
"""

import sys

from loguru import logger

from affiliate_engine.config.settings import Settings


def setup_logging(config: Settings) -> None:
    """
    Configure loguru sinks.

    Args:
        config: Application settings (log_level, log_file)
    """
    logger.remove()
    logger.add(
        sys.stderr,
        level=config.log_level,
        backtrace=config.debug,
        diagnose=config.debug,
    )

    if config.log_file:
        logger.add(
            config.log_file,
            rotation="1 day",
            retention="7 days",
            level=config.log_level,
            encoding="utf-8",
            serialize=config.environment == "production",
        )

    logger.info(
        "Logging configured",
        extra={"environment": config.environment, "level": config.log_level},
    )
