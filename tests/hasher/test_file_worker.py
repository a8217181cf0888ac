"""Tests for the file worker task body."""

import hashlib
import os
import zlib
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from treedigest.hasher.digests import DigestAlgorithm
from treedigest.hasher.discovery import FileEntry
from treedigest.hasher.errors import FileReadError
from treedigest.hasher.file_worker import FileResult, hash_file_entry, make_file_task
from treedigest.hasher.hardlinks import HardLinkCache


def entry_for(path: Path) -> FileEntry:
    return FileEntry.from_stat(path, os.lstat(path))


@pytest.fixture
def cache():
    return HardLinkCache()


@pytest.fixture
def emitted():
    return []


class TestFileResult:
    """Tests for result line formatting."""

    def test_computed_line(self):
        """Test the computed marker."""
        result = FileResult(digest="abc123", path=Path("/data/a.txt"))
        assert result.format_line() == f"abc123  {Path('/data/a.txt')}  -"

    def test_reused_line(self):
        """Test the reused marker."""
        result = FileResult(digest="abc123", path=Path("/data/b.txt"), reused=True)
        assert result.format_line() == f"abc123  {Path('/data/b.txt')}  *"


class TestHashFileEntry:
    """Tests for hash_file_entry."""

    def test_single_link_file_is_computed_not_cached(self, tmp_path, cache, emitted):
        """Test that files with one link are hashed and never cached."""
        path = tmp_path / "a.txt"
        path.write_bytes(b"hi")

        result = hash_file_entry(entry_for(path), cache, DigestAlgorithm.SHA256, emitted.append)

        assert result == FileResult(hashlib.sha256(b"hi").hexdigest(), path, reused=False)
        assert emitted == [result]
        assert len(cache) == 0

    def test_hard_linked_file_is_cached_then_reused(self, tmp_path, cache, emitted):
        """Test that the second hard link reuses the first digest without reading."""
        first = tmp_path / "a.txt"
        first.write_bytes(b"shared")
        second = tmp_path / "b.txt"
        os.link(first, second)

        computed = hash_file_entry(entry_for(first), cache, DigestAlgorithm.MD5, emitted.append)
        with patch("treedigest.hasher.file_worker.compute_file_digest") as compute:
            reused = hash_file_entry(entry_for(second), cache, DigestAlgorithm.MD5, emitted.append)
            compute.assert_not_called()

        assert computed.reused is False
        assert reused.reused is True
        assert reused.digest == computed.digest == hashlib.md5(b"shared").hexdigest()
        assert len(cache) == 1
        assert [r.path for r in emitted] == [first, second]

    def test_cached_inode_reused_even_if_link_count_dropped(self, tmp_path, cache, emitted):
        """Test that any entry whose inode is cached is never read again."""
        path = tmp_path / "a.txt"
        path.write_bytes(b"x")
        entry = entry_for(path)
        cache.put_if_absent(entry.inode_identity, "feedface")

        result = hash_file_entry(entry, cache, DigestAlgorithm.SHA256, emitted.append)

        assert result == FileResult("feedface", path, reused=True)

    def test_entry_without_inode(self, tmp_path, cache, emitted):
        """Test that entries lacking an inode identity bypass the cache."""
        path = tmp_path / "a.txt"
        path.write_bytes(b"x")
        entry = FileEntry(path=path, is_regular=True, is_symlink=False, link_count=2, inode_identity=None)

        result = hash_file_entry(entry, cache, DigestAlgorithm.SHA1, emitted.append)

        assert result.reused is False
        assert len(cache) == 0

    def test_read_failure_raises_file_read_error(self, tmp_path, cache, emitted):
        """Test that open failures surface as FileReadError and emit nothing."""
        path = tmp_path / "gone.txt"
        path.write_bytes(b"x")
        entry = entry_for(path)
        path.unlink()

        with pytest.raises(FileReadError) as exc_info:
            hash_file_entry(entry, cache, DigestAlgorithm.SHA256, emitted.append)

        assert exc_info.value.context["path"] == str(path)
        assert isinstance(exc_info.value.__cause__, OSError)
        assert emitted == []

    def test_failed_claim_is_released(self, tmp_path, cache, emitted):
        """Test that a read failure on a hard link leaves no claim behind."""
        first = tmp_path / "a.txt"
        first.write_bytes(b"x")
        os.link(first, tmp_path / "b.txt")
        entry = entry_for(first)

        with patch("treedigest.hasher.file_worker.compute_file_digest", side_effect=OSError("io")):
            with pytest.raises(FileReadError):
                hash_file_entry(entry, cache, DigestAlgorithm.SHA256, emitted.append)

        # A later caller becomes the new owner instead of blocking forever
        assert cache.claim(entry.inode_identity) is None
        assert entry.inode_identity not in cache

    def test_chunk_size_passed_through(self, tmp_path, cache):
        """Test that the configured chunk size reaches the digest function."""
        path = tmp_path / "a.txt"
        path.write_bytes(b"x")

        with patch("treedigest.hasher.file_worker.compute_file_digest", return_value="00") as compute:
            hash_file_entry(entry_for(path), cache, DigestAlgorithm.SHA256, Mock(), chunk_size=123)

        compute.assert_called_once_with(path, DigestAlgorithm.SHA256, 123)


class TestMakeFileTask:
    """Tests for make_file_task."""

    def test_task_is_deferred(self, tmp_path, cache):
        """Test that building a task does not hash anything."""
        path = tmp_path / "a.txt"
        path.write_bytes(b"hi")
        emit = Mock()

        task = make_file_task(entry_for(path), cache, DigestAlgorithm.CRC32, emit)
        emit.assert_not_called()

        result = task()

        emit.assert_called_once_with(result)
        assert result.digest == f"{zlib.crc32(b'hi') & 0xFFFFFFFF:08x}"
