"""Tests for FileSystemAdapter dispatch, listing and rename emulation."""

from unittest.mock import MagicMock, patch

import pytest

from common.types import ObjectStat
from davfs.adapter import FileSystemAdapter, normalize_name
from davfs.exceptions import (
    IncompleteIOError,
    IsDirectoryError,
    NotDirectoryError,
    NotFoundError,
    ObjectNotFoundError,
    ObjectStoreError,
)
from objectstore.client import ObjectStoreClient
from objectstore.memory_store import InMemoryObjectStore


class TestNormalizeName:
    """Test protocol path to object id mapping."""

    @pytest.mark.parametrize('name,expected', [
        ('', ''),
        ('/', ''),
        ('/x', 'x'),
        ('x', 'x'),
        ('/a/b.txt', 'a/b.txt'),
    ])
    def test_normalize(self, name, expected):
        assert normalize_name(name) == expected


class TestScenario:
    """End-to-end scenario over a pool holding x (5 bytes) and y (10 bytes)."""

    def test_stat_rename_stat(self, filesystem):
        entry = filesystem.stat('x')
        assert entry.size == 5
        assert not entry.is_directory

        assert len(filesystem.readdir('')) == 3

        filesystem.rename('x', 'z')

        with pytest.raises(NotFoundError):
            filesystem.stat('x')
        assert filesystem.stat('z').size == 5


class TestReaddir:
    """Test full-scan listing of the pseudo-root."""

    def test_root_plus_one_entry_per_object(self, filesystem):
        entries = filesystem.readdir('/')

        roots = [e for e in entries if e.is_directory]
        assert len(roots) == 1
        assert roots[0].name == ''
        assert entries[0] is roots[0]
        assert {e.name for e in entries if not e.is_directory} == {'x', 'y'}
        assert {e.name: e.size for e in entries[1:]} == {'x': 5, 'y': 10}

    def test_empty_pool(self, memory_store):
        entries = FileSystemAdapter(memory_store).readdir('')
        assert len(entries) == 1
        assert entries[0].is_directory
        assert entries[0].size == 0

    def test_count_limits_entries(self, filesystem):
        assert len(filesystem.readdir('', count=2)) == 2
        assert len(filesystem.readdir('', count=1)) == 1

    def test_failed_stat_is_skipped(self, populated_store):
        real_stat = populated_store.stat

        def flaky_stat(object_id):
            if object_id == 'x':
                raise ObjectNotFoundError('deleted during listing')
            return real_stat(object_id)

        with patch.object(populated_store, 'stat', side_effect=flaky_stat):
            entries = FileSystemAdapter(populated_store).readdir('')

        assert [e.name for e in entries[1:]] == ['y']

    def test_metadata_log_objects_are_hidden(self, populated_store):
        populated_store.write('.md/root/', b'+log', 0)

        entries = FileSystemAdapter(populated_store).readdir('')

        assert {e.name for e in entries[1:]} == {'x', 'y'}

    def test_iteration_error_propagates(self):
        store = MagicMock(spec=ObjectStoreClient)
        store.pool_stats.return_value = 0
        store.iterate_keys.side_effect = ObjectStoreError('listing failed')
        with pytest.raises(ObjectStoreError):
            FileSystemAdapter(store).readdir('')

    def test_readdir_on_object(self, filesystem):
        with pytest.raises(NotDirectoryError):
            filesystem.readdir('x')


class TestSimpleOperations:
    """Test mkdir, open and remove_all."""

    def test_mkdir_is_noop(self):
        store = MagicMock(spec=ObjectStoreClient)
        FileSystemAdapter(store).mkdir('/photos')
        assert store.method_calls == []

    def test_open_is_lazy(self):
        store = MagicMock(spec=ObjectStoreClient)
        handle = FileSystemAdapter(store).open_file('/missing')
        assert handle.object_id == 'missing'
        assert handle.tell() == 0
        assert store.method_calls == []

    def test_remove_all(self, filesystem, populated_store):
        filesystem.remove_all('/x')
        assert set(populated_store.iterate_keys()) == {'y'}

    def test_remove_all_missing_passes_store_error(self, filesystem):
        with pytest.raises(ObjectNotFoundError):
            filesystem.remove_all('missing')


class TestRename:
    """Test copy-then-delete rename emulation."""

    def test_post_condition(self, filesystem, populated_store):
        filesystem.rename('/y', '/w')

        assert populated_store.read('w', 100, 0) == b'0123456789'
        with pytest.raises(ObjectNotFoundError):
            populated_store.stat('y')

    def test_replaces_larger_destination(self, filesystem, populated_store):
        filesystem.rename('x', 'y')

        assert populated_store.read('y', 100, 0) == b'hello'
        assert set(populated_store.iterate_keys()) == {'y'}

    def test_empty_object(self, memory_store):
        memory_store.write('empty', b'', 0)
        FileSystemAdapter(memory_store).rename('empty', 'still-empty')
        assert memory_store.stat('still-empty').size == 0
        assert set(memory_store.iterate_keys()) == {'still-empty'}

    def test_same_name_is_noop(self, filesystem, populated_store):
        filesystem.rename('x', '/x')
        assert populated_store.read('x', 100, 0) == b'hello'

    def test_missing_source(self, filesystem, populated_store):
        with pytest.raises(NotFoundError):
            filesystem.rename('missing', 'z')
        assert set(populated_store.iterate_keys()) == {'x', 'y'}

    @pytest.mark.parametrize('old,new', [('/', 'z'), ('x', '/'), ('', 'z')])
    def test_root_cannot_be_renamed(self, filesystem, old, new):
        with pytest.raises(IsDirectoryError):
            filesystem.rename(old, new)

    def test_short_read_is_incomplete(self):
        store = MagicMock(spec=ObjectStoreClient)
        store.stat.return_value = ObjectStat(size=10, mod_time=None)
        store.read.return_value = b'12345'

        with pytest.raises(IncompleteIOError) as exc_info:
            FileSystemAdapter(store).rename('a', 'b')

        assert exc_info.value.expected == 10
        assert exc_info.value.actual == 5
        store.write.assert_not_called()
        store.delete.assert_not_called()

    def test_failure_during_copy_leaves_original(self, populated_store):
        with patch.object(populated_store, 'write', side_effect=ObjectStoreError('disk full')):
            with pytest.raises(ObjectStoreError):
                FileSystemAdapter(populated_store).rename('x', 'z')

        assert set(populated_store.iterate_keys()) == {'x', 'y'}

    def test_failure_before_delete_leaves_both(self, populated_store):
        with patch.object(populated_store, 'delete', side_effect=ObjectStoreError('connection lost')):
            with pytest.raises(ObjectStoreError):
                FileSystemAdapter(populated_store).rename('x', 'z')

        assert populated_store.read('x', 100, 0) == b'hello'
        assert populated_store.read('z', 100, 0) == b'hello'

    def test_over_disk_store(self, disk_store):
        disk_store.write('report.pdf', b'%PDF-1.7', 0)
        FileSystemAdapter(disk_store).rename('/report.pdf', '/archive/report.pdf')

        assert set(disk_store.iterate_keys()) == {'archive/report.pdf'}
        assert disk_store.read('archive/report.pdf', 100, 0) == b'%PDF-1.7'


def test_adapter_works_on_any_store():
    store = InMemoryObjectStore({'only': b'1'})
    assert [e.name for e in FileSystemAdapter(store).readdir('')] == ['', 'only']
