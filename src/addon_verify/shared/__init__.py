"""Shared modules for addon-verify."""

from .logging import configure_logging, get_logger, level_for_verbosity
from .paths import ADDON_VERIFY_DIR, CONFIG_FILE

__all__ = [
    # Paths
    "ADDON_VERIFY_DIR",
    "CONFIG_FILE",
    # Logging
    "configure_logging",
    "get_logger",
    "level_for_verbosity",
]
