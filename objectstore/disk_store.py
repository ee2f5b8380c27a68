"""Object pool stored as one file per object under <storage root>/<pool>/."""

import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator
from urllib.parse import quote, unquote

from common.constants import OBJECT_FILE_SUFFIX, TEMP_FILE_SUFFIX
from common.types import ObjectStat
from davfs.exceptions import ObjectNotFoundError, ObjectStoreError
from objectstore.client import ObjectStoreClient


def get_object_path(pool_dir: Path, object_id: str) -> Path:
    """
    Get file path for an object.

    Object ids may contain any character, so they are percent-quoted into a
    single path component.

    Args:
        pool_dir: Directory holding the pool
        object_id: Key of the object

    Returns:
        Path object for the object file
    """
    return pool_dir / f"{quote(object_id, safe='')}{OBJECT_FILE_SUFFIX}"


def object_id_from_path(filepath: Path) -> str:
    """
    Recover the object id from an object file path.

    Args:
        filepath: Path produced by get_object_path

    Returns:
        Original object id
    """
    return unquote(filepath.name[:-len(OBJECT_FILE_SUFFIX)])


class DiskObjectStore(ObjectStoreClient):
    """
    Object pool kept in a local directory.

    Every write and truncate builds the new contents in a temporary file and
    renames it over the object file, so a failed call leaves the old
    contents in place. The directory is the only index.
    """

    def __init__(self, pool_dir: Path):
        self.pool_dir = Path(pool_dir)

    def _load(self, filepath: Path) -> bytearray:
        try:
            return bytearray(filepath.read_bytes())
        except FileNotFoundError:
            return bytearray()

    def _replace(self, filepath: Path, content: bytes) -> None:
        """
        Atomically swap filepath's contents for content.

        Raises:
            OSError: If the temporary file cannot be written or renamed;
                filepath is left untouched
        """
        fd, tmp_name = tempfile.mkstemp(dir=self.pool_dir, suffix=TEMP_FILE_SUFFIX)
        try:
            os.fchmod(fd, 0o644)
            with os.fdopen(fd, 'wb') as f:
                f.write(content)
            os.replace(tmp_name, filepath)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def read(self, object_id: str, length: int, offset: int) -> bytes:
        """
        Read part of an object from disk.

        Args:
            object_id: Key of the object
            length: Maximum number of bytes to return
            offset: Byte position to start at

        Returns:
            Up to length bytes; b"" at or past the end

        Raises:
            ObjectNotFoundError: If the object does not exist
            ObjectStoreError: If offset is negative or the read fails
        """
        if offset < 0:
            raise ObjectStoreError(f"Negative offset: {offset}")
        filepath = get_object_path(self.pool_dir, object_id)
        try:
            with open(filepath, 'rb') as f:
                f.seek(offset)
                return f.read(length)
        except FileNotFoundError as e:
            raise ObjectNotFoundError(f"Object not found: {object_id!r}") from e
        except OSError as e:
            raise ObjectStoreError(f"Failed to read {object_id!r}: {e}") from e

    def write(self, object_id: str, data: bytes, offset: int) -> None:
        """
        Write data into an object at offset, creating the file if needed.

        Args:
            object_id: Key of the object
            data: Bytes to write
            offset: Byte position to start at

        Raises:
            ObjectStoreError: If offset is negative or the write fails
        """
        if offset < 0:
            raise ObjectStoreError(f"Negative offset: {offset}")
        filepath = get_object_path(self.pool_dir, object_id)
        try:
            content = self._load(filepath)
            if len(content) < offset:
                content.extend(bytes(offset - len(content)))
            content[offset:offset + len(data)] = data
            self._replace(filepath, content)
        except OSError as e:
            raise ObjectStoreError(f"Failed to write {object_id!r}: {e}") from e

    def truncate(self, object_id: str, size: int) -> None:
        """
        Truncate or zero-extend an object file to size bytes.

        Args:
            object_id: Key of the object
            size: New length in bytes

        Raises:
            ObjectStoreError: If size is negative or the truncate fails
        """
        if size < 0:
            raise ObjectStoreError(f"Invalid truncate size {size} for {object_id!r}")
        filepath = get_object_path(self.pool_dir, object_id)
        try:
            content = self._load(filepath)
            del content[size:]
            content.extend(bytes(size - len(content)))
            self._replace(filepath, content)
        except OSError as e:
            raise ObjectStoreError(f"Failed to truncate {object_id!r}: {e}") from e

    def delete(self, object_id: str) -> None:
        """
        Delete an object file from disk.

        Args:
            object_id: Key of the object

        Raises:
            ObjectNotFoundError: If the object does not exist
        """
        filepath = get_object_path(self.pool_dir, object_id)
        try:
            filepath.unlink()
        except FileNotFoundError as e:
            raise ObjectNotFoundError(f"Object not found: {object_id!r}") from e
        except OSError as e:
            raise ObjectStoreError(f"Failed to delete {object_id!r}: {e}") from e

    def stat(self, object_id: str) -> ObjectStat:
        """
        Get size and modification time of an object file.

        Args:
            object_id: Key of the object

        Returns:
            ObjectStat for the object

        Raises:
            ObjectNotFoundError: If the object does not exist
        """
        filepath = get_object_path(self.pool_dir, object_id)
        try:
            st = filepath.stat()
        except FileNotFoundError as e:
            raise ObjectNotFoundError(f"Object not found: {object_id!r}") from e
        except OSError as e:
            raise ObjectStoreError(f"Failed to stat {object_id!r}: {e}") from e
        mod_time = datetime.fromtimestamp(st.st_mtime_ns // 1_000_000_000, tz=timezone.utc)
        mod_time = mod_time.replace(microsecond=(st.st_mtime_ns % 1_000_000_000) // 1000)
        return ObjectStat(size=st.st_size, mod_time=mod_time)

    def iterate_keys(self) -> Iterator[str]:
        """
        Yield all object ids in the pool directory.

        Raises:
            ObjectStoreError: If the pool directory cannot be listed
        """
        try:
            filepaths = list(self.pool_dir.glob(f"*{OBJECT_FILE_SUFFIX}"))
        except OSError as e:
            raise ObjectStoreError(f"Failed to list pool {self.pool_dir}: {e}") from e
        for filepath in filepaths:
            yield object_id_from_path(filepath)

    def pool_stats(self) -> int:
        """
        Sum the sizes of all object files in the pool.

        Returns:
            Total bytes stored

        Raises:
            ObjectStoreError: If the pool directory or an object file cannot be read
        """
        total = 0
        try:
            for filepath in self.pool_dir.glob(f"*{OBJECT_FILE_SUFFIX}"):
                try:
                    total += filepath.stat().st_size
                except FileNotFoundError:
                    # Deleted between glob and stat.
                    continue
        except OSError as e:
            raise ObjectStoreError(f"Failed to size pool {self.pool_dir}: {e}") from e
        return total
