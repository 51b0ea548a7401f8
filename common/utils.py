# -*- coding: utf-8 -*-
"""
================================================================================
Common Utility Functions
================================================================================
Purpose:
----------------
This script provides common, reusable utility functions that are shared across
the tracking, admin and web modules. It handles reading configuration values
from a `secrets.txt` file (or the environment) and setting up logging for the
long-running entry points.

By centralizing the logic for accessing settings, we can easily manage where
the spreadsheet API endpoint comes from, and we avoid duplicating this code in
every script that needs it.

Key Functions:
- `get_secret(key_name)`: The core function that returns a setting, first from
  the environment and then from the `secrets.txt` file.
- `get_sheets_settings()`: Collects every setting needed to talk to the
  spreadsheet API into one dictionary.
- `setup_logging(name)`: Configures a dated log file plus stdout output.
----------------
"""

# =====================================================================================
# --- Imports and Configuration ---
# =====================================================================================
import os
import sys
import logging
from datetime import datetime

# Project root is one level above this `common` directory.
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
SECRETS_FILE = os.path.join(PROJECT_ROOT, 'secrets.txt')
LOG_DIR = os.path.join(PROJECT_ROOT, 'logs')

DEFAULT_TAB_ID = 'Shipments'
DEFAULT_CACHE_TTL_SECONDS = 30
DEFAULT_REFRESH_INTERVAL_SECONDS = 30
DEFAULT_REQUEST_TIMEOUT = 30


# =====================================================================================
# --- Core Functions ---
# =====================================================================================

def get_secret(key_name, default=None):
    """
    Reads a specific key from the environment or the `secrets.txt` file.

    The environment wins when both define the key. The `secrets.txt` file is
    expected to be a simple key-value store, with each line formatted as
    `KEY_NAME=SECRET_VALUE`.

    Args:
        key_name (str): The name of the key to retrieve (e.g., "SHEETS_API_BASE_URL").
        default: Value returned when the key is found nowhere.

    Returns:
        str or None: The value as a string if the key is found, otherwise `default`.
    """
    env_value = os.getenv(key_name)
    if env_value:
        return env_value

    try:
        with open(SECRETS_FILE, 'r') as f:
            for line in f:
                # Split the line at the first '=' and take the second part.
                if line.startswith(key_name + '='):
                    return line.strip().split('=', 1)[1]
    except FileNotFoundError:
        logging.debug(f"{SECRETS_FILE} not found, using defaults for '{key_name}'.")
    return default


def _get_int_setting(key_name, default):
    """Reads an integer setting, falling back to `default` on missing or bad values."""
    raw_value = get_secret(key_name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        logging.warning(f"Setting {key_name}={raw_value!r} is not an integer. Using {default}.")
        return default


def get_sheets_settings():
    """
    Collects the spreadsheet API settings into one dictionary.

    Returns:
        dict: `base_url` (None when not configured), `tab_id`,
              `cache_ttl_seconds`, `refresh_interval_seconds` and `request_timeout`.
    """
    return {
        'base_url': get_secret('SHEETS_API_BASE_URL'),
        'tab_id': get_secret('SHEETS_TAB_ID', DEFAULT_TAB_ID),
        'cache_ttl_seconds': _get_int_setting('CACHE_TTL_SECONDS', DEFAULT_CACHE_TTL_SECONDS),
        'refresh_interval_seconds': _get_int_setting('REFRESH_INTERVAL_SECONDS', DEFAULT_REFRESH_INTERVAL_SECONDS),
        'request_timeout': _get_int_setting('SHEETS_REQUEST_TIMEOUT', DEFAULT_REQUEST_TIMEOUT),
    }


def setup_logging(name, log_dir=LOG_DIR):
    """Sets up a dated log file for the given entry point, mirrored to stdout."""
    os.makedirs(log_dir, exist_ok=True)
    log_filename = datetime.now().strftime(f"{name}_%Y-%m-%d.log")
    log_path = os.path.join(log_dir, log_filename)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_path),
            logging.StreamHandler(sys.stdout)
        ]
    )
    return logging.getLogger()
