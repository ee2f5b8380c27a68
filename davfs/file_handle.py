"""Cursor over a single object in the pool."""

import logging
import os
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from common.types import EntryInfo
from davfs.entry_info import PseudoRootDirectory, StatTarget, resolve_target
from davfs.exceptions import (
    IsDirectoryError,
    NotFoundError,
    ObjectNotFoundError,
    UseAfterCloseError,
)
from objectstore.client import ObjectStoreClient

if TYPE_CHECKING:
    from davfs.adapter import FileSystemAdapter

logger = logging.getLogger(__name__)


class HandleState(Enum):
    OPEN = "open"
    CLOSED = "closed"


class FileHandle:
    """
    Read/write cursor bound to one object id.

    The cursor is not clamped: seeking before the start or past the end is
    allowed and only fails once a read or write reaches the store. Writes
    are all-or-nothing; a failed write leaves the cursor where it was.
    Once closed, every operation except close() raises UseAfterCloseError.
    """

    def __init__(self, filesystem: "FileSystemAdapter", object_id: str):
        self._filesystem: Optional["FileSystemAdapter"] = filesystem
        self._object_id = object_id
        self._target: StatTarget = resolve_target(object_id)
        self._position = 0
        self._state = HandleState.OPEN

    def __enter__(self) -> "FileHandle":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"FileHandle(object_id={self._object_id!r}, position={self._position}, state={self._state.value})"

    @property
    def object_id(self) -> str:
        return self._object_id

    @property
    def state(self) -> HandleState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._state is HandleState.CLOSED

    def readinto(self, buffer) -> int:
        """
        Read up to len(buffer) bytes at the cursor into buffer.

        Args:
            buffer: Writable bytes-like object (bytearray, memoryview)

        Returns:
            Number of bytes read; 0 at or past the end of the object

        Raises:
            NotFoundError: If the object does not exist
            ObjectStoreError: If the store rejects the read (e.g. negative cursor)
        """
        store = self._require_file("read")
        view = memoryview(buffer).cast("B")
        logger.debug(f"Read: {self._object_id} offset={self._position} length={len(view)}")
        try:
            data = store.read(self._object_id, len(view), self._position)
        except ObjectNotFoundError as e:
            raise NotFoundError(f"No such file: {self._object_id!r}") from e
        read = len(data)
        view[:read] = data
        self._position += read
        return read

    def read(self, size: int = -1) -> bytes:
        """
        Read and return up to size bytes; size < 0 reads to the end of the object.
        """
        if size < 0:
            remaining = self.stat().size - self._position
            size = max(remaining, 0)
        buffer = bytearray(size)
        read = self.readinto(buffer)
        return bytes(buffer[:read])

    def write(self, data: bytes) -> int:
        """
        Write data at the cursor.

        The store gives no partial-write accounting, so an error means nothing
        was written and the cursor stays put.

        Args:
            data: Bytes to write

        Returns:
            len(data)

        Raises:
            ObjectStoreError: If the store rejects the write
        """
        store = self._require_file("write")
        logger.debug(f"Write: {self._object_id} offset={self._position} length={len(data)}")
        store.write(self._object_id, bytes(data), self._position)
        self._position += len(data)
        return len(data)

    def truncate(self, size: Optional[int] = None) -> int:
        """
        Resize the object to size bytes (defaults to the cursor position).

        Returns:
            The new size
        """
        store = self._require_file("truncate")
        if size is None:
            size = self._position
        logger.debug(f"Truncate: {self._object_id} size={size}")
        store.truncate(self._object_id, size)
        return size

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        """
        Move the cursor.

        Args:
            offset: Byte offset relative to whence
            whence: os.SEEK_SET, os.SEEK_CUR or os.SEEK_END

        Returns:
            New cursor position

        Raises:
            NotFoundError: If whence is SEEK_END and the object does not exist
            ValueError: On an unknown whence
        """
        self._require_open("seek")
        logger.debug(f"Seek: {self._object_id} offset={offset} whence={whence}")
        if whence == os.SEEK_SET:
            self._position = offset
        elif whence == os.SEEK_CUR:
            self._position += offset
        elif whence == os.SEEK_END:
            size = self.stat().size
            self._position = size + offset
        else:
            raise ValueError(f"Invalid whence: {whence}")
        return self._position

    def tell(self) -> int:
        self._require_open("tell")
        return self._position

    def stat(self) -> EntryInfo:
        """
        Stat the bound object, or synthesize the pseudo-root directory entry.

        Raises:
            NotFoundError: If the object does not exist
            ObjectStoreError: On any other backend failure, unchanged
        """
        store = self._require_open("stat")
        logger.debug(f"Stat: {self._object_id}")
        return self._target.stat(store)

    def readdir(self, count: int = 0) -> List[EntryInfo]:
        """
        List directory entries. Only the pseudo-root can be listed.

        Args:
            count: Maximum number of entries (root included); 0 for all

        Raises:
            NotDirectoryError: If the handle is bound to a regular object
        """
        store = self._require_open("readdir")
        logger.debug(f"Readdir: {self._object_id}")
        return self._target.readdir(store, count)

    def close(self) -> None:
        if self._state is HandleState.CLOSED:
            return
        logger.debug(f"Close: {self._object_id}")
        self._state = HandleState.CLOSED
        self._position = 0
        self._filesystem = None

    def _require_open(self, operation: str) -> ObjectStoreClient:
        if self._state is HandleState.CLOSED or self._filesystem is None:
            raise UseAfterCloseError(f"Cannot {operation} {self._object_id!r}: handle is closed")
        return self._filesystem.store

    def _require_file(self, operation: str) -> ObjectStoreClient:
        store = self._require_open(operation)
        if isinstance(self._target, PseudoRootDirectory):
            raise IsDirectoryError(f"Cannot {operation} the root directory")
        return store
