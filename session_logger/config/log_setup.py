"""
Logging setup for the CLI and the HTTP server entry points.

Library modules only create named loggers; handlers are installed here.
"""

import logging
from typing import Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: Union[int, str] = logging.INFO) -> None:
    """Install a stderr handler on the root logger.

    Args:
        level: Logging level number or name such as "DEBUG"
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)
