"""Unit tests for the metadata record codec."""

import struct
from datetime import datetime, timezone

import pytest

from common.types import DIRECTORY_MODE, FILE_MODE, EntryInfo, RecordState
from davfs.exceptions import DecodeError
from davfs.metadata_record import (
    HEADER_SIZE,
    MAX_NAME_LENGTH,
    compute_crc,
    decode_record,
    encode_record,
    iter_records,
    record_length,
)

MOD_TIME = datetime(2024, 5, 1, 12, 30, 15, 123456, tzinfo=timezone.utc)


def make_entry(name, size=42, mod_time=MOD_TIME):
    is_directory = name.endswith('/')
    return EntryInfo(
        name=name,
        size=size,
        mode=DIRECTORY_MODE if is_directory else FILE_MODE,
        mod_time=mod_time,
        is_directory=is_directory,
    )


class TestChecksum:
    """Test the CRC-16/CCITT helper."""

    def test_standard_check_value(self):
        assert compute_crc(b'123456789') == 0x906E

    def test_empty_input(self):
        assert compute_crc(b'') == 0


class TestGoldenRecord:
    """Test a byte-exact record shared with other log writers."""

    GOLDEN = bytes([
        0x2B,
        0x05, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00,
        0x00, 0xF1, 0x53, 0x65, 0x00, 0x00, 0x00, 0x00,
        0x00, 0xCA, 0x5B, 0x07,
        0x01, 0x00,
        0x78,
        0x45, 0xEA,
    ])
    ENTRY = EntryInfo(
        name='x',
        size=5,
        mode=FILE_MODE,
        mod_time=datetime(2023, 11, 14, 22, 13, 20, 123456, tzinfo=timezone.utc),
        is_directory=False,
    )

    def test_encode_matches_golden_bytes(self):
        assert encode_record(RecordState.ADDED, self.ENTRY) == self.GOLDEN

    def test_decode_golden_bytes(self):
        assert decode_record(self.GOLDEN) == (RecordState.ADDED, self.ENTRY)

    def test_checksum_residue(self):
        # X.25 over a message followed by its own FCS always yields 0x0F47.
        assert compute_crc(self.GOLDEN) == 0x0F47


class TestEncode:
    """Test the encoded byte layout."""

    def test_layout_is_little_endian(self):
        entry = make_entry('a.txt', size=0x0102030405060708)
        record = encode_record(RecordState.ADDED, entry)

        assert len(record) == 23 + 5 + 2
        assert record[0] == ord('+')
        assert record[1:9] == bytes([8, 7, 6, 5, 4, 3, 2, 1])
        seconds, nanos, name_length = struct.unpack('<qIH', record[9:23])
        assert seconds == int(MOD_TIME.timestamp())
        assert nanos == 123456000
        assert name_length == 5
        assert record[23:28] == b'a.txt'

    def test_checksum_is_last_and_covers_header_and_name(self):
        record = encode_record(RecordState.REMOVED, make_entry('a.txt'))

        assert record[0] == ord('-')
        (crc,) = struct.unpack('<H', record[-2:])
        assert crc == compute_crc(record[:-2])

    def test_name_too_long_rejected(self):
        with pytest.raises(ValueError):
            encode_record(RecordState.ADDED, make_entry('n' * (MAX_NAME_LENGTH + 1)))

    def test_negative_size_rejected(self):
        with pytest.raises(ValueError):
            encode_record(RecordState.ADDED, make_entry('a', size=-1))

    def test_length_counts_utf8_bytes(self):
        record = encode_record(RecordState.ADDED, make_entry('é'))
        assert len(record) == record_length(2)


class TestRoundTrip:
    """Test encode followed by decode."""

    @pytest.mark.parametrize('name', [
        '',
        'x',
        'reports/',
        'photos/2024/summer.jpg',
        'ünïcödé-名前.txt',
        'n' * MAX_NAME_LENGTH,
    ])
    @pytest.mark.parametrize('state', [RecordState.ADDED, RecordState.REMOVED])
    def test_round_trip(self, name, state):
        entry = make_entry(name)

        decoded_state, decoded = decode_record(encode_record(state, entry))

        assert decoded_state is state
        assert decoded == entry

    def test_round_trip_before_epoch(self):
        entry = make_entry('old', mod_time=datetime(1960, 2, 29, 23, 59, 59, 999999, tzinfo=timezone.utc))

        _, decoded = decode_record(encode_record(RecordState.ADDED, entry))

        assert decoded.mod_time == entry.mod_time

    def test_round_trip_max_size(self):
        entry = make_entry('big', size=2 ** 64 - 1)

        _, decoded = decode_record(encode_record(RecordState.ADDED, entry))

        assert decoded.size == 2 ** 64 - 1

    def test_directory_inferred_from_trailing_separator(self):
        _, decoded = decode_record(encode_record(RecordState.ADDED, make_entry('dir/')))

        assert decoded.is_directory
        assert decoded.mode == DIRECTORY_MODE


class TestDecodeRejection:
    """Test that malformed records are rejected outright."""

    def test_every_single_bit_flip_is_detected(self):
        record = encode_record(RecordState.ADDED, make_entry('notes/todo.md'))

        for index in range(len(record)):
            for bit in range(8):
                corrupted = bytearray(record)
                corrupted[index] ^= 1 << bit
                with pytest.raises(DecodeError):
                    decode_record(bytes(corrupted))

    def test_short_input_rejected(self):
        with pytest.raises(DecodeError, match='min size'):
            decode_record(b'+' * 23)

    def test_empty_input_rejected(self):
        with pytest.raises(DecodeError):
            decode_record(b'')

    def test_truncated_record_rejected(self):
        record = encode_record(RecordState.ADDED, make_entry('a.txt'))
        with pytest.raises(DecodeError, match='expected entry of size'):
            decode_record(record[:-1])

    def test_trailing_garbage_rejected(self):
        record = encode_record(RecordState.ADDED, make_entry('a.txt'))
        with pytest.raises(DecodeError):
            decode_record(record + b'\x00')

    def test_unknown_state_with_valid_checksum_rejected(self):
        record = bytearray(encode_record(RecordState.ADDED, make_entry('a.txt')))
        record[0] = ord('?')
        record[-2:] = struct.pack('<H', compute_crc(bytes(record[:-2])))
        with pytest.raises(DecodeError, match='state flag'):
            decode_record(bytes(record))

    def test_out_of_range_nanos_with_valid_checksum_rejected(self):
        record = bytearray(encode_record(RecordState.ADDED, make_entry('a.txt')))
        record[17:21] = struct.pack('<I', 1_000_000_000)
        record[-2:] = struct.pack('<H', compute_crc(bytes(record[:-2])))
        with pytest.raises(DecodeError, match='nanoseconds'):
            decode_record(bytes(record))


class TestIterRecords:
    """Test decoding of concatenated records."""

    def test_decodes_in_order(self):
        first = make_entry('a')
        second = make_entry('bb/')
        data = encode_record(RecordState.ADDED, first) + encode_record(RecordState.REMOVED, second)

        assert list(iter_records(data)) == [
            (RecordState.ADDED, first),
            (RecordState.REMOVED, second),
        ]

    def test_empty_log(self):
        assert list(iter_records(b'')) == []

    def test_truncated_tail_rejected(self):
        data = encode_record(RecordState.ADDED, make_entry('a')) + b'+\x00\x00'
        with pytest.raises(DecodeError, match='Truncated'):
            list(iter_records(data))

    def test_truncated_name_rejected(self):
        record = encode_record(RecordState.ADDED, make_entry('abcdef'))
        with pytest.raises(DecodeError):
            list(iter_records(record[:HEADER_SIZE + 2]))
