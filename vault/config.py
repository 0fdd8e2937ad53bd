"""Configuration settings for the media vault server."""

import os
from common.constants import DEFAULT_CONTENT_DIR, DEFAULT_DATABASE_PATH, DEFAULT_PORT, MAX_UPLOAD_BYTES


CONTENT_DIR = os.environ.get("VAULT_CONTENT_DIR", DEFAULT_CONTENT_DIR)

DATABASE_PATH = os.environ.get("VAULT_DATABASE_PATH", DEFAULT_DATABASE_PATH)

VAULT_HOST = os.environ.get("VAULT_HOST", "0.0.0.0")

VAULT_PORT = int(os.environ.get("VAULT_PORT", str(DEFAULT_PORT)))

# Passphrase the AES key is derived from; fixed for the process lifetime
SECRET_KEY = os.environ.get("VAULT_SECRET_KEY", "")

ACCESS_PASSWORD = os.environ.get("VAULT_PASSWORD", "")

MAX_UPLOAD_SIZE = int(os.environ.get("VAULT_MAX_UPLOAD_BYTES", str(MAX_UPLOAD_BYTES)))
