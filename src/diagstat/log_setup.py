"""
Logging setup for applications embedding diagstat.

Library modules only create module-level loggers; the embedding application
calls setup_logging() once to route them somewhere.
"""

import logging
import sys
from typing import IO, Optional, Union

LOG_FORMAT = "%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: Union[int, str] = logging.INFO, stream: Optional[IO[str]] = None
) -> None:
    """
    Configure root logging with the project log format.

    Args:
        level: Logging level, as a number or a name such as "DEBUG".
        stream: Destination stream, stdout by default.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {level}")
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        stream=stream or sys.stdout,
        force=True,
    )
