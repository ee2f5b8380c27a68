"""Configuration settings for the WebDAV server."""

import os
from common.constants import (
    DEFAULT_MOUNT_PREFIX,
    DEFAULT_POOL_NAME,
    DEFAULT_SERVER_PORT,
    DEFAULT_STORAGE_PATH,
)


SERVER_HOST = os.environ.get("DAVFS_HOST", "0.0.0.0")

SERVER_PORT = int(os.environ.get("DAVFS_PORT", str(DEFAULT_SERVER_PORT)))

STORAGE_BACKEND = os.environ.get("DAVFS_BACKEND", "disk")

STORAGE_PATH = os.environ.get("DAVFS_STORAGE_PATH", DEFAULT_STORAGE_PATH)

POOL_NAME = os.environ.get("DAVFS_POOL", DEFAULT_POOL_NAME)

CREATE_POOL = os.environ.get("DAVFS_CREATE_POOL", "false").lower() in ("1", "true", "yes")

MOUNT_PREFIX = os.environ.get("DAVFS_MOUNT_PREFIX", DEFAULT_MOUNT_PREFIX).rstrip("/")
