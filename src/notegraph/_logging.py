"""Logging configuration for notegraph.

Usage in other modules:
    import logging
    log = logging.getLogger(__name__)

The log level can be configured via the NOTEGRAPH_LOG_LEVEL environment variable
(DEBUG, INFO, WARNING, ERROR). INFO is the default.
"""

import logging
import os
import sys

_PACKAGE_LOGGER = "notegraph"


def configure_logging() -> None:
    """Configure logging for the notegraph package.

    Call this once at application startup (the CLI does).
    Subsequent calls are no-ops.
    """
    root_logger = logging.getLogger(_PACKAGE_LOGGER)

    if root_logger.handlers:
        return

    level_name = os.environ.get("NOTEGRAPH_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter(
            fmt="[%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    root_logger.setLevel(level)
    root_logger.addHandler(handler)

    # Avoid duplicate messages through the root logger
    root_logger.propagate = False


def set_quiet_mode(quiet: bool) -> None:
    """Raise the package log level to ERROR when quiet output is requested."""
    root_logger = logging.getLogger(_PACKAGE_LOGGER)
    level = logging.ERROR if quiet else logging.INFO
    root_logger.setLevel(level)
    for handler in root_logger.handlers:
        handler.setLevel(level)

