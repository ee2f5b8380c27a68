"""Stat targets: what an object id resolves to and how its EntryInfo is built."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Union

from common.constants import METADATA_LOG_PREFIX, ROOT_MARKERS
from common.types import DIRECTORY_MODE, FILE_MODE, EntryInfo
from davfs.exceptions import (
    NotDirectoryError,
    NotFoundError,
    ObjectNotFoundError,
    ObjectStoreError,
)
from objectstore.client import ObjectStoreClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PseudoRootDirectory:
    """
    The synthesized directory standing for the whole pool.
    """
    name: str = ""

    def stat(self, store: ObjectStoreClient) -> EntryInfo:
        return EntryInfo(
            name=self.name,
            size=store.pool_stats(),
            mode=DIRECTORY_MODE,
            mod_time=datetime.now(timezone.utc),
            is_directory=True,
        )

    def readdir(self, store: ObjectStoreClient, count: int = 0) -> List[EntryInfo]:
        """
        List the pool: the root entry first, then one entry per object.

        Metadata log objects are not files and are never listed. Objects
        whose stat fails (deleted mid-listing, backend hiccup) are logged and
        left out. Errors from key iteration itself propagate.
        """
        entries = [self.stat(store)]
        for object_id in store.iterate_keys():
            if object_id.startswith(METADATA_LOG_PREFIX):
                continue
            if 0 < count <= len(entries):
                break
            try:
                entries.append(object_entry(store, object_id))
            except ObjectStoreError as e:
                logger.warning(f"Skipping {object_id!r} in listing, stat failed: {e}")
        return entries


@dataclass(frozen=True)
class RegularFile:
    """
    A single object in the pool.
    """
    object_id: str

    def stat(self, store: ObjectStoreClient) -> EntryInfo:
        try:
            return object_entry(store, self.object_id)
        except ObjectNotFoundError as e:
            raise NotFoundError(f"No such file: {self.object_id!r}") from e

    def readdir(self, store: ObjectStoreClient, count: int = 0) -> List[EntryInfo]:
        raise NotDirectoryError(f"Not a directory: {self.object_id!r}")


StatTarget = Union[PseudoRootDirectory, RegularFile]


def resolve_target(object_id: str) -> StatTarget:
    """
    Map an object id onto its stat target.

    Args:
        object_id: Normalized object id ("" or "/" for the pseudo-root)

    Returns:
        PseudoRootDirectory or RegularFile
    """
    if object_id in ROOT_MARKERS:
        return PseudoRootDirectory()
    return RegularFile(object_id)


def object_entry(store: ObjectStoreClient, object_id: str) -> EntryInfo:
    """
    Build the EntryInfo of one object from the store's metadata.

    Raises:
        ObjectNotFoundError: If the object does not exist
        ObjectStoreError: On any other backend failure
    """
    object_stat = store.stat(object_id)
    return EntryInfo(
        name=object_id,
        size=object_stat.size,
        mode=FILE_MODE,
        mod_time=object_stat.mod_time,
        is_directory=False,
    )
