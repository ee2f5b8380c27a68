"""Shared pytest fixtures for all tests."""

import pytest

from davfs.adapter import FileSystemAdapter
from objectstore.disk_store import DiskObjectStore
from objectstore.memory_store import InMemoryObjectStore


@pytest.fixture
def memory_store():
    """
    Create an empty in-memory pool.

    Returns:
        InMemoryObjectStore instance
    """
    return InMemoryObjectStore()


@pytest.fixture
def populated_store():
    """
    Create a pool holding 'x' (5 bytes) and 'y' (10 bytes).

    Returns:
        InMemoryObjectStore instance
    """
    return InMemoryObjectStore({
        'x': b'hello',
        'y': b'0123456789',
    })


@pytest.fixture
def filesystem(populated_store):
    """
    Create an adapter over the populated pool.

    Args:
        populated_store: Pool fixture with 'x' and 'y'

    Returns:
        FileSystemAdapter instance
    """
    return FileSystemAdapter(populated_store)


@pytest.fixture
def disk_store(tmp_path):
    """
    Create an on-disk pool in a temporary directory.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        DiskObjectStore instance
    """
    pool_dir = tmp_path / 'pools' / 'test'
    pool_dir.mkdir(parents=True)
    return DiskObjectStore(pool_dir)
