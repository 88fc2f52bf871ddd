"""
Logging setup.

Call setup_logging() once at startup; modules use logging.getLogger(__name__).
"""

import logging

from app.core.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str = None) -> None:
    """Configure the root logger from settings.log_level."""
    settings = get_settings()
    level_name = (level or settings.log_level).upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)

    # pymongo is chatty at DEBUG
    logging.getLogger("pymongo").setLevel(logging.WARNING)


def mask_key(api_key: str) -> str:
    """Mask an API key for logs: first 4 + '...' + last 4."""
    if not api_key or len(api_key) <= 8:
        return "***"
    return api_key[:4] + "..." + api_key[-4:]
