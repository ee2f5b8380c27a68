"""Contract every object store backend implements for the file system adapter."""

import abc
from typing import Iterator

from common.types import ObjectStat


class ObjectStoreClient(abc.ABC):
    """
    Flat, key-addressed object pool.

    Object ids are opaque strings; the store knows nothing about directories.
    Every call blocks until the backend answers. Missing objects raise
    ObjectNotFoundError, any other backend failure raises ObjectStoreError.
    """

    @abc.abstractmethod
    def read(self, object_id: str, length: int, offset: int) -> bytes:
        """
        Read up to length bytes starting at offset.

        Reading at or past the end of the object returns b"".

        Raises:
            ObjectNotFoundError: If the object does not exist
            ObjectStoreError: If offset is negative or the read fails
        """

    @abc.abstractmethod
    def write(self, object_id: str, data: bytes, offset: int) -> None:
        """
        Write data at offset, creating the object if needed.

        Either the whole buffer is written or nothing is.

        Raises:
            ObjectStoreError: If offset is negative or the write fails
        """

    @abc.abstractmethod
    def truncate(self, object_id: str, size: int) -> None:
        """
        Cut or zero-extend the object to exactly size bytes, creating it if needed.
        """

    @abc.abstractmethod
    def delete(self, object_id: str) -> None:
        """
        Remove an object.

        Raises:
            ObjectNotFoundError: If the object does not exist
        """

    @abc.abstractmethod
    def stat(self, object_id: str) -> ObjectStat:
        """
        Return size and modification time of an object.

        Raises:
            ObjectNotFoundError: If the object does not exist
        """

    @abc.abstractmethod
    def iterate_keys(self) -> Iterator[str]:
        """Yield every object id in the pool, in backend order."""

    @abc.abstractmethod
    def pool_stats(self) -> int:
        """Return the aggregate byte count of all objects in the pool."""

    def close(self) -> None:
        """Release the connection to the pool."""
