import logging
import os
from typing import Optional

from .config import ENV_LOG_LEVEL


def configure_logging(default_level: int = logging.INFO, level_name: Optional[str] = None) -> None:
    """Configure root logger with a sane default format.

    ``level_name`` wins over the BINGO_LOG_LEVEL env var, which wins over
    ``default_level``.
    """
    level_name = level_name or os.getenv(ENV_LOG_LEVEL)
    level = default_level
    if level_name:
        level = getattr(logging, level_name.upper(), default_level)
    logging.basicConfig(
        level=level,
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )
