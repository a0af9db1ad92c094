"""Path management for addon-verify.

Manages the ~/.addon-verify/ directory.
"""

from pathlib import Path

# Base directory for all addon-verify data
ADDON_VERIFY_DIR = Path.home() / ".addon-verify"

# Default config file location
CONFIG_FILE = ADDON_VERIFY_DIR / "config.yaml"
