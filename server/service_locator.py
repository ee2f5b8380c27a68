"""Service locator for the process-wide file system adapter."""

from typing import Optional

from davfs.adapter import FileSystemAdapter
from davfs.exceptions import ConnectFailureError

_filesystem: Optional[FileSystemAdapter] = None
_connect_error: Optional[str] = None


def set_filesystem(filesystem: Optional[FileSystemAdapter]):
    """Set global file system adapter instance"""
    global _filesystem, _connect_error
    _filesystem = filesystem
    _connect_error = None


def set_connect_error(error: str):
    """Record why the storage pool could not be opened"""
    global _filesystem, _connect_error
    _filesystem = None
    _connect_error = error


def get_connect_error() -> Optional[str]:
    """Get the startup connection error, if any"""
    return _connect_error


def get_filesystem() -> FileSystemAdapter:
    """
    FastAPI dependency returning the connected adapter.

    Raises:
        ConnectFailureError: If the pool was never opened
    """
    if _filesystem is None:
        raise ConnectFailureError(_connect_error or "Storage backend is not connected")
    return _filesystem
