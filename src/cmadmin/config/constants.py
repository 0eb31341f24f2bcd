"""Default paths, environment variable names, and constants."""

from __future__ import annotations

import platformdirs

APP_NAME = "cmadmin"
APP_AUTHOR = "cmadmin"

CONFIG_DIR = platformdirs.user_config_path(APP_NAME, APP_AUTHOR)
CONFIG_FILE = CONFIG_DIR / "config.toml"

# Environment variable names
ENV_SERVER = "CMADMIN_SERVER"
ENV_USERNAME = "CMADMIN_USERNAME"
ENV_PASSWORD = "CMADMIN_PASSWORD"
ENV_PROFILE = "CMADMIN_PROFILE"

# Connection defaults
DEFAULT_TIMEOUT = 30.0
DEFAULT_SETTLE_DELAY = 2.0
