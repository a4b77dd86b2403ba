"""Centralized path definitions for mailcodec.

Nothing here is created on import; directories are made on first use by the
component that needs them.
"""

import os
from pathlib import Path

# Base directory
MAILCODEC_DIR = Path.home() / ".mailcodec"

# Subdirectories
LOGS_DIR = MAILCODEC_DIR / "logs"

# Specific files
CONFIG_PATH = MAILCODEC_DIR / "config.json"

# Environment override for the configuration file
CONFIG_ENV_VAR = "MAILCODEC_CONFIG"


def resolve_config_path() -> Path:
    """Return the configuration file path, honouring the environment override."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return CONFIG_PATH
