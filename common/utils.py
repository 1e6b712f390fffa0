# -*- coding: utf-8 -*-
"""
================================================================================
Common Utility Functions
================================================================================
Purpose:
----------------
This script provides the shared helpers for reading account settings from the
`secrets.txt` file in the project root. The USPS label scripts use it to find
the Web Tools user id and to decide whether requests go to the live or the
test endpoint.

Key Functions:
- `get_secret(key_name)`: Reads the `secrets.txt` file line by line and
  extracts the value for a given key.
- `get_usps_credentials()`: Returns the USPS user id together with the test
  mode flag.
----------------
"""

# =====================================================================================
# --- Imports and Configuration ---
# =====================================================================================
import os
import logging

# `secrets.txt` lives one level above this directory, in the project root.
SECRETS_FILE = os.path.join(os.path.dirname(__file__), '..', 'secrets.txt')

TRUE_VALUES = ('1', 'true', 'yes', 'on')


# =====================================================================================
# --- Core Functions ---
# =====================================================================================

def get_secret(key_name):
    """
    Reads a specific key from the `secrets.txt` file.

    The file is a simple key-value store, one `KEY_NAME=SECRET_VALUE` per line.

    Args:
        key_name (str): The name of the key to retrieve (e.g., "USPS_USER_ID").

    Returns:
        str or None: The secret value if the key is found, otherwise None.
    """
    try:
        with open(SECRETS_FILE, 'r') as f:
            for line in f:
                if line.startswith(key_name + '='):
                    return line.strip().split('=', 1)[1]
        logging.warning(f"Key '{key_name}' not found in {SECRETS_FILE}")
        return None
    except FileNotFoundError:
        logging.error(f"{SECRETS_FILE} not found.")
        return None


def get_usps_credentials():
    """
    Retrieves the USPS Web Tools settings at once.

    `USPS_TEST_MODE` is optional and defaults to the live endpoint.

    Returns:
        tuple: (user_id, test_mode). (None, False) if the user id is missing.
    """
    user_id = get_secret('USPS_USER_ID')
    if not user_id:
        logging.error("Could not find USPS_USER_ID in secrets.txt")
        return None, False

    test_mode = (get_secret('USPS_TEST_MODE') or '').strip().lower() in TRUE_VALUES
    logging.info("USPS credentials loaded.")
    return user_id, test_mode
