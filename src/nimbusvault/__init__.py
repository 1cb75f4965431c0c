"""
NimbusVault — client for a personal encrypted backup service.

Browse the remote file tree exposed by the backend, snapshot any file
or folder into your encrypted vault, and restore it later with your
password.
"""

import os

__version__ = "0.1.0"
__author__ = "NimbusVault"

VAULT_HOME = os.environ.get("NIMBUSVAULT_HOME", "~/.nimbusvault")
DEFAULT_API_URL = "http://localhost:8080"
