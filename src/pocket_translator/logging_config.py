"""Logging setup for the translator."""

import logging
from typing import Optional, Union

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: Union[int, str] = logging.WARNING, format_str: Optional[str] = None):
    """Configure root logging for the command line tool.

    Args:
        level: Logging level, as a number or a name such as "DEBUG".
        format_str: Log format. Uses DEFAULT_FORMAT if not provided.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.WARNING)

    logging.basicConfig(
        level=level,
        format=format_str or DEFAULT_FORMAT,
        handlers=[logging.StreamHandler()],
    )
