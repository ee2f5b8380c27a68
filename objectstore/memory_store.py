"""In-process object pool backed by a dict of bytearrays."""

import threading
from datetime import datetime, timezone
from typing import Dict, Iterator, Optional

from common.types import ObjectStat
from davfs.exceptions import ObjectNotFoundError, ObjectStoreError
from objectstore.client import ObjectStoreClient


class _StoredObject:
    __slots__ = ("data", "mod_time")

    def __init__(self, data: bytearray, mod_time: datetime):
        self.data = data
        self.mod_time = mod_time


class InMemoryObjectStore(ObjectStoreClient):
    """
    Object pool that lives in process memory.

    Each call holds the pool lock, so a single read or write is atomic per
    object. Used by tests and by the server when DAVFS_BACKEND=memory.
    """

    def __init__(self, objects: Optional[Dict[str, bytes]] = None):
        self._lock = threading.Lock()
        self._objects: Dict[str, _StoredObject] = {}
        for object_id, data in (objects or {}).items():
            self._objects[object_id] = _StoredObject(bytearray(data), _now())

    def read(self, object_id: str, length: int, offset: int) -> bytes:
        _check_offset(offset)
        with self._lock:
            stored = self._get(object_id)
            return bytes(stored.data[offset:offset + length])

    def write(self, object_id: str, data: bytes, offset: int) -> None:
        _check_offset(offset)
        with self._lock:
            stored = self._objects.get(object_id)
            if stored is None:
                stored = _StoredObject(bytearray(), _now())
                self._objects[object_id] = stored
            end = offset + len(data)
            if len(stored.data) < offset:
                stored.data.extend(b"\x00" * (offset - len(stored.data)))
            stored.data[offset:end] = data
            stored.mod_time = _now()

    def truncate(self, object_id: str, size: int) -> None:
        if size < 0:
            raise ObjectStoreError(f"Invalid truncate size {size} for {object_id!r}")
        with self._lock:
            stored = self._objects.setdefault(object_id, _StoredObject(bytearray(), _now()))
            if len(stored.data) > size:
                del stored.data[size:]
            else:
                stored.data.extend(b"\x00" * (size - len(stored.data)))
            stored.mod_time = _now()

    def delete(self, object_id: str) -> None:
        with self._lock:
            if self._objects.pop(object_id, None) is None:
                raise ObjectNotFoundError(f"Object not found: {object_id!r}")

    def stat(self, object_id: str) -> ObjectStat:
        with self._lock:
            stored = self._get(object_id)
            return ObjectStat(size=len(stored.data), mod_time=stored.mod_time)

    def iterate_keys(self) -> Iterator[str]:
        with self._lock:
            keys = list(self._objects)
        return iter(keys)

    def pool_stats(self) -> int:
        with self._lock:
            return sum(len(stored.data) for stored in self._objects.values())

    def _get(self, object_id: str) -> _StoredObject:
        stored = self._objects.get(object_id)
        if stored is None:
            raise ObjectNotFoundError(f"Object not found: {object_id!r}")
        return stored


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _check_offset(offset: int) -> None:
    if offset < 0:
        raise ObjectStoreError(f"Negative offset: {offset}")
