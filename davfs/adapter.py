"""File system facade the protocol server calls into."""

import logging
import os
from typing import List

from common.constants import PATH_SEPARATOR, ROOT_MARKERS
from common.types import EntryInfo
from davfs.exceptions import IncompleteIOError, IsDirectoryError
from davfs.file_handle import FileHandle
from objectstore.client import ObjectStoreClient

logger = logging.getLogger(__name__)


def normalize_name(name: str) -> str:
    """
    Turn a protocol path into an object id.

    One leading separator is dropped; "" and "/" both name the pseudo-root.

    Args:
        name: Path as received from the protocol layer (e.g., "/report.pdf")

    Returns:
        Object id (e.g., "report.pdf"), or "" for the pseudo-root
    """
    if name in ROOT_MARKERS:
        return ""
    if name.startswith(PATH_SEPARATOR):
        return name[1:]
    return name


class FileSystemAdapter:
    """
    Presents a flat object pool as a one-level file system.

    The pool itself is the only directory (the pseudo-root); every object is
    a regular file directly under it. The adapter holds no locks and never
    retries: concurrent callers race at the store's own granularity and every
    store error reaches the caller unchanged.
    """

    def __init__(self, store: ObjectStoreClient):
        self.store = store

    def mkdir(self, name: str, perm: int = 0o755) -> None:
        """Directories are not materialized in a flat pool; always succeeds."""
        logger.debug(f"Mkdir: {name}")

    def open_file(self, name: str, flags: int = os.O_RDONLY, perm: int = 0o644) -> FileHandle:
        """
        Return a handle on name with its cursor at 0.

        The store is not contacted; a missing object only surfaces on the
        first stat or read. flags and perm are accepted for interface
        compatibility and ignored.
        """
        logger.debug(f"OpenFile: {name} flags={flags:#o}")
        return FileHandle(self, normalize_name(name))

    def remove_all(self, name: str) -> None:
        """
        Delete the object named name.

        Raises:
            ObjectNotFoundError: If the object does not exist
            ObjectStoreError: On any other backend failure
        """
        logger.debug(f"RemoveAll: {name}")
        self.store.delete(normalize_name(name))

    def rename(self, old_name: str, new_name: str) -> None:
        """
        Move an object by copying it to the new id and deleting the old one.

        The pool has no rename primitive, so this is NOT atomic. The whole
        object is buffered in memory. A failure while copying leaves only the
        original object. A failure after the new object is written but before
        the old one is deleted leaves both objects holding the same data; a
        separate reconciliation pass has to clean those up.

        Raises:
            IsDirectoryError: If either name is the pseudo-root
            NotFoundError: If old_name does not exist
            IncompleteIOError: If fewer bytes were read or written than expected
            ObjectStoreError: On any other backend failure
        """
        old_id = normalize_name(old_name)
        new_id = normalize_name(new_name)
        logger.info(f"Rename: {old_name} -> {new_name}")
        if old_id in ROOT_MARKERS or new_id in ROOT_MARKERS:
            raise IsDirectoryError("Cannot rename the root directory")
        if old_id == new_id:
            return

        with FileHandle(self, old_id) as source:
            size = source.stat().size
            buffer = bytearray(size)
            read = source.readinto(buffer)
            if read != size:
                raise IncompleteIOError("read", old_id, size, read)

        with FileHandle(self, new_id) as target:
            written = target.write(buffer)
            if written != len(buffer):
                raise IncompleteIOError("write", new_id, len(buffer), written)
            target.truncate(len(buffer))

        # Crash window: both objects exist until this delete lands.
        self.store.delete(old_id)

    def stat(self, name: str) -> EntryInfo:
        """
        Stat name through a short-lived handle.

        Raises:
            NotFoundError: If the object does not exist
        """
        logger.debug(f"Stat: {name}")
        with self.open_file(name) as handle:
            return handle.stat()

    def readdir(self, name: str, count: int = 0) -> List[EntryInfo]:
        """
        List name; only the pseudo-root can be listed.

        Raises:
            NotDirectoryError: If name is a regular object
        """
        with self.open_file(name) as handle:
            return handle.readdir(count)
