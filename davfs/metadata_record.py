"""Binary metadata record codec with CRC-16/CCITT (X.25) integrity check.

Record layout, all integers little-endian:

    offset  size  field
    0       1     state flag ('+' added, '-' removed)
    1       8     size (uint64)
    9       8     modification time, seconds since epoch (int64)
    17      4     modification time, nanoseconds (uint32)
    21      2     name length N (uint16)
    23      N     name (UTF-8)
    23+N    2     CRC-16/X-25 over bytes [0, 23+N)
"""

import struct
from datetime import datetime, timedelta, timezone
from typing import Iterator, Tuple

import crcmod.predefined

from common.constants import PATH_SEPARATOR
from common.types import DIRECTORY_MODE, FILE_MODE, EntryInfo, RecordState
from davfs.exceptions import DecodeError

HEADER = struct.Struct("<BQqIH")
CHECKSUM = struct.Struct("<H")

HEADER_SIZE = HEADER.size
CHECKSUM_SIZE = CHECKSUM.size
MIN_RECORD_SIZE = 24
MAX_NAME_LENGTH = 0xFFFF
MAX_SIZE = 0xFFFFFFFFFFFFFFFF
NANOS_PER_SECOND = 1_000_000_000

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_crc16_x25 = crcmod.predefined.mkCrcFun("x-25")


def compute_crc(data: bytes) -> int:
    """
    Compute CRC-16/CCITT in its X.25 form over data.

    Reflected polynomial 0x8408, register preset to 0xFFFF and complemented
    on output; the check value of b"123456789" is 0x906E.

    Args:
        data: Bytes to checksum

    Returns:
        16-bit checksum
    """
    return _crc16_x25(data)


def record_length(name_length: int) -> int:
    """Total encoded length of a record whose name is name_length bytes."""
    return HEADER_SIZE + name_length + CHECKSUM_SIZE


def split_timestamp(mod_time: datetime) -> Tuple[int, int]:
    """
    Split a datetime into whole seconds since the epoch and nanoseconds.

    Naive datetimes are taken to be UTC.
    """
    if mod_time.tzinfo is None:
        mod_time = mod_time.replace(tzinfo=timezone.utc)
    delta = mod_time - EPOCH
    seconds = delta.days * 86400 + delta.seconds
    return seconds, delta.microseconds * 1000


def join_timestamp(seconds: int, nanos: int) -> datetime:
    """Inverse of split_timestamp; sub-microsecond precision is dropped."""
    return EPOCH + timedelta(seconds=seconds, microseconds=nanos // 1000)


def encode_record(state: RecordState, entry: EntryInfo) -> bytes:
    """
    Encode one membership event.

    Args:
        state: RecordState.ADDED or RecordState.REMOVED
        entry: Entry the event describes

    Returns:
        Encoded record, checksum last

    Raises:
        ValueError: If the name is longer than 65535 bytes or size is out of range
    """
    name = entry.name.encode("utf-8")
    if len(name) > MAX_NAME_LENGTH:
        raise ValueError(f"Name too long for metadata record: {len(name)} > {MAX_NAME_LENGTH} bytes")
    if not 0 <= entry.size <= MAX_SIZE:
        raise ValueError(f"Size out of range for metadata record: {entry.size}")

    seconds, nanos = split_timestamp(entry.mod_time)
    try:
        header = HEADER.pack(RecordState(state), entry.size, seconds, nanos, len(name))
    except struct.error as e:
        raise ValueError(f"Cannot encode metadata record for {entry.name!r}: {e}") from e

    body = header + name
    return body + CHECKSUM.pack(compute_crc(body))


def decode_record(data: bytes) -> Tuple[RecordState, EntryInfo]:
    """
    Decode and verify one record.

    Args:
        data: Exactly one encoded record

    Returns:
        Tuple of (state, entry); the entry is a directory when its name ends in '/'

    Raises:
        DecodeError: If the record is short, has the wrong length, fails the
            checksum or carries out-of-range fields
    """
    data = bytes(data)
    if len(data) < MIN_RECORD_SIZE:
        raise DecodeError(
            f"Metadata expected entry of min size {MIN_RECORD_SIZE}, got {len(data)}"
        )

    flag, size, seconds, nanos, name_length = HEADER.unpack_from(data, 0)
    expected = record_length(name_length)
    if len(data) != expected:
        raise DecodeError(f"Metadata expected entry of size {expected}, got {len(data)}")

    body_end = HEADER_SIZE + name_length
    (crc,) = CHECKSUM.unpack_from(data, body_end)
    if compute_crc(data[:body_end]) != crc:
        raise DecodeError("Metadata CRC error")

    try:
        state = RecordState(flag)
    except ValueError as e:
        raise DecodeError(f"Unknown metadata state flag: {flag:#04x}") from e
    if nanos >= NANOS_PER_SECOND:
        raise DecodeError(f"Metadata nanoseconds out of range: {nanos}")

    try:
        name = data[HEADER_SIZE:body_end].decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError(f"Metadata name is not valid UTF-8: {e}") from e

    try:
        mod_time = join_timestamp(seconds, nanos)
    except OverflowError as e:
        raise DecodeError(f"Metadata timestamp out of range: {seconds}") from e

    is_directory = name.endswith(PATH_SEPARATOR)
    entry = EntryInfo(
        name=name,
        size=size,
        mode=DIRECTORY_MODE if is_directory else FILE_MODE,
        mod_time=mod_time,
        is_directory=is_directory,
    )
    return state, entry


def iter_records(data: bytes) -> Iterator[Tuple[RecordState, EntryInfo]]:
    """
    Decode a concatenation of records, in order.

    Raises:
        DecodeError: On the first truncated or corrupt record
    """
    data = bytes(data)
    offset = 0
    while offset < len(data):
        if len(data) - offset < HEADER_SIZE:
            raise DecodeError(f"Truncated metadata record at offset {offset}")
        (name_length,) = struct.unpack_from("<H", data, offset + HEADER_SIZE - 2)
        end = offset + record_length(name_length)
        if end > len(data):
            raise DecodeError(f"Truncated metadata record at offset {offset}")
        yield decode_record(data[offset:end])
        offset = end
