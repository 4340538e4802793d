"""
Logging Configuration

Single stream handler on the root logger so every module-level
``logging.getLogger(__name__)`` shares one format and level.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def configure_logging(level: str = "INFO") -> None:
    """
    Install the application log handler.

    Safe to call more than once; later calls only adjust the level.

    Args:
        level: Log level name (e.g. "INFO", "DEBUG").
    """
    global _configured
    root = logging.getLogger()
    root.setLevel(level.upper())

    if _configured:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)

    # SQL echo is controlled by the engine, keep the logger quiet otherwise
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    _configured = True
