"""Append-only per-directory log of metadata records.

Each directory gets one log object, usually in a separate metadata pool.
Log objects share the ".md/" key prefix; when they live in the data pool,
listings of the pseudo-root skip them.
Replaying the log yields directory membership without scanning the data
pool. The adapter's readdir does not consult it; listings always come from a
full key scan.
"""

import logging
from typing import Dict, List, Tuple

from common.constants import METADATA_LOG_PREFIX, METADATA_ROOT_DIRECTORY
from common.types import EntryInfo, RecordState
from davfs.exceptions import ObjectNotFoundError
from davfs.metadata_record import encode_record, iter_records
from objectstore.client import ObjectStoreClient

logger = logging.getLogger(__name__)


def log_object_id(directory: str) -> str:
    """
    Object id of the log for directory; "" maps to the root log.
    """
    return f"{METADATA_LOG_PREFIX}{directory or METADATA_ROOT_DIRECTORY}"


class MetadataLog:
    """
    Membership log for one directory.
    """

    def __init__(self, store: ObjectStoreClient, directory: str = ""):
        self.store = store
        self.directory = directory
        self.object_id = log_object_id(directory)

    def append(self, state: RecordState, entry: EntryInfo) -> int:
        """
        Append one record to the end of the log.

        Args:
            state: RecordState.ADDED or RecordState.REMOVED
            entry: Entry the event describes

        Returns:
            Offset the record was written at
        """
        record = encode_record(state, entry)
        offset = self._size()
        self.store.write(self.object_id, record, offset)
        logger.debug(f"Appended {state.name} {entry.name!r} to {self.object_id} at {offset}")
        return offset

    def record_added(self, entry: EntryInfo) -> int:
        return self.append(RecordState.ADDED, entry)

    def record_removed(self, entry: EntryInfo) -> int:
        return self.append(RecordState.REMOVED, entry)

    def read_records(self) -> List[Tuple[RecordState, EntryInfo]]:
        """
        Read and verify every record in the log, oldest first.

        Returns:
            List of (state, entry); empty when the log does not exist yet

        Raises:
            DecodeError: If any record is truncated or corrupt
        """
        size = self._size()
        if size == 0:
            return []
        data = self.store.read(self.object_id, size, 0)
        return list(iter_records(data))

    def replay(self) -> Dict[str, EntryInfo]:
        """
        Fold the log into the current membership of the directory.

        Returns:
            Mapping of entry name to its most recent EntryInfo
        """
        members: Dict[str, EntryInfo] = {}
        for state, entry in self.read_records():
            if state is RecordState.ADDED:
                members[entry.name] = entry
            else:
                members.pop(entry.name, None)
        return members

    def _size(self) -> int:
        try:
            return self.store.stat(self.object_id).size
        except ObjectNotFoundError:
            return 0
