"""Opens the configured object pool at startup."""

import logging
from pathlib import Path

from davfs.exceptions import ConnectFailureError
from objectstore.client import ObjectStoreClient
from objectstore.disk_store import DiskObjectStore
from objectstore.memory_store import InMemoryObjectStore

logger = logging.getLogger(__name__)

SUPPORTED_BACKENDS = ("disk", "memory")


def connect_object_store(
    backend: str,
    storage_path: str,
    pool: str,
    create_pool: bool = False
) -> ObjectStoreClient:
    """
    Connect to a storage pool.

    Args:
        backend: 'disk' or 'memory'
        storage_path: Root directory holding one directory per pool (disk only)
        pool: Name of the pool to open
        create_pool: Create the pool directory when it does not exist (disk only)

    Returns:
        Connected ObjectStoreClient

    Raises:
        ConnectFailureError: If the backend is unknown or the pool cannot be opened
    """
    logger.info(f"Creating connection: backend={backend}")
    if backend == "memory":
        logger.info(f"Initialized in-memory pool: {pool}")
        return InMemoryObjectStore()

    if backend != "disk":
        raise ConnectFailureError(
            f"Unknown storage backend {backend!r}, expected one of {SUPPORTED_BACKENDS}"
        )

    if not pool or "/" in pool or pool in (".", ".."):
        raise ConnectFailureError(f"Invalid pool name: {pool!r}")

    root = Path(storage_path)
    if not root.is_dir():
        raise ConnectFailureError(f"Storage path does not exist: {root}")

    pool_dir = root / pool
    logger.info(f"Opening pool: {pool_dir}")
    if not pool_dir.is_dir():
        if not create_pool:
            raise ConnectFailureError(f"Pool does not exist: {pool}")
        try:
            pool_dir.mkdir()
        except OSError as e:
            raise ConnectFailureError(f"Failed to create pool {pool}: {e}") from e
        logger.info(f"Created pool: {pool}")

    logger.info("Initialized")
    return DiskObjectStore(pool_dir)
