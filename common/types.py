"""Shared data type definitions (EntryInfo, ObjectStat, RecordState)."""

import stat
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum

DIRECTORY_MODE = stat.S_IFDIR | 0o755
FILE_MODE = stat.S_IFREG | 0o644


class RecordState(IntEnum):
    """
    Membership event carried by a metadata record.
    """
    ADDED = ord("+")
    REMOVED = ord("-")


@dataclass(frozen=True)
class ObjectStat:
    """
    Per-object metadata as reported by the object store.
    """
    size: int
    mod_time: datetime


@dataclass(frozen=True)
class EntryInfo:
    """
    Synthesized file or directory metadata handed to the protocol layer.
    """
    name: str
    size: int
    mode: int
    mod_time: datetime
    is_directory: bool
