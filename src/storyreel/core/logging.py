"""Logging setup shared by the API and the CLI."""
import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure root logging once.

    Args:
        level: Log level name, defaults to the LOG_LEVEL setting
    """
    if level is None:
        from storyreel.config import get_settings

        level = get_settings().LOG_LEVEL

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
