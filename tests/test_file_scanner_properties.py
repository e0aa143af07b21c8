"""
Property-based and behavioural tests for FileScanner.

Covers exclusion containment, symlink and special-file skipping, the
mismatch classification of changed content and failure propagation.
"""

import logging
import os
import tempfile
from pathlib import Path

import pytest
from hypothesis import given, settings, strategies as st

from checksummer.core.checksum import HashMethod, compute_checksum
from checksummer.core.file_scanner import FileRecord, FileScanner, ScanError
from checksummer.core.file_scanner import scanner as scanner_module
from tests.scan_test_utils import FakeClock, make_record, write_file


MD5_OF_123 = "202cb962ac59075b964b07152d234b70"

segment_strategy = st.text(alphabet="abcxyz_-", min_size=1, max_size=6)

relative_file_strategy = st.lists(segment_strategy, min_size=1, max_size=3).map(
    lambda parts: "/".join(parts)
)


def _real_tmpdir(tmpdir: str) -> str:
    return os.path.realpath(tmpdir)


@given(
    files=st.lists(relative_file_strategy, min_size=1, max_size=12, unique=True),
    excluded=st.lists(relative_file_strategy, min_size=0, max_size=3),
)
@settings(max_examples=50, deadline=None)
def test_exclusion_containment(files: list[str], excluded: list[str]):
    """
    *For any* tree and exclusion prefixes, no produced record starts with an
    exclusion and every other regular file is recorded.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        root = _real_tmpdir(tmpdir)
        written = set()
        for rel in files:
            target = Path(root) / rel
            # A path already used as a directory (or a file on the way) cannot be reused.
            if any(Path(w) == target or Path(w) in target.parents or target in Path(w).parents for w in written):
                continue
            write_file(target, rel)
            written.add(str(target))

        exclusions = [os.path.join(root, e) for e in excluded]
        scanner = FileScanner(hash_method=HashMethod.MD5, exclusions=exclusions)
        records = scanner.scan(root, {})

        produced = {r.path for r in records}
        for path in produced:
            assert not any(path.startswith(e) for e in exclusions)

        expected = {
            p for p in written if not any(p.startswith(e) for e in exclusions)
        }
        assert produced == expected


def test_exclusion_is_plain_string_prefix(tmp_path):
    """An exclusion of /x/foo also covers /x/foobar."""
    root = os.path.realpath(tmp_path)
    write_file(Path(root) / "foo" / "a.txt", "a")
    write_file(Path(root) / "foobar" / "b.txt", "b")
    write_file(Path(root) / "other" / "c.txt", "c")

    scanner = FileScanner(exclusions=[os.path.join(root, "foo")])
    paths = {r.path for r in scanner.scan(root, {})}

    assert paths == {os.path.join(root, "other", "c.txt")}


def test_set_exclusions_replaces_previous(tmp_path):
    root = os.path.realpath(tmp_path)
    a = write_file(Path(root) / "a" / "f", "a")
    b = write_file(Path(root) / "b" / "f", "b")

    scanner = FileScanner(exclusions=[os.path.join(root, "a")])
    scanner.set_exclusions([os.path.join(root, "b")])

    assert {r.path for r in scanner.scan(root, {})} == {a}
    assert b not in {r.path for r in scanner.scan(root, {})}


def test_excluded_root_produces_nothing(tmp_path):
    root = os.path.realpath(tmp_path)
    write_file(Path(root) / "f", "x")

    scanner = FileScanner(exclusions=[root])

    assert scanner.scan(root, {}) == []


def test_symlinks_are_not_followed_or_recorded(tmp_path):
    root = os.path.realpath(tmp_path / "root")
    outside = os.path.realpath(tmp_path / "outside")
    real_file = write_file(Path(root) / "real.txt", "data")
    write_file(Path(outside) / "hidden.txt", "hidden")

    os.symlink(real_file, os.path.join(root, "link.txt"))
    os.symlink(outside, os.path.join(root, "linkdir"))

    records = FileScanner().scan(root, {})

    assert [r.path for r in records] == [real_file]


def test_symlink_root_is_skipped(tmp_path):
    target = os.path.realpath(tmp_path / "target")
    write_file(Path(target) / "f", "x")
    link = os.path.join(os.path.realpath(tmp_path), "link")
    os.symlink(target, link)

    assert FileScanner().scan(link, {}) == []


def test_fifo_is_skipped(tmp_path):
    root = os.path.realpath(tmp_path)
    regular = write_file(Path(root) / "regular", "x")
    os.mkfifo(os.path.join(root, "pipe"))

    records = FileScanner().scan(root, {})

    assert [r.path for r in records] == [regular]


def _deny_read(monkeypatch, denied: set[str]) -> None:
    real_access = os.access

    def fake_access(path, mode, *args, **kwargs):
        if path in denied and mode & os.R_OK:
            return False
        return real_access(path, mode, *args, **kwargs)

    monkeypatch.setattr(scanner_module.os, "access", fake_access)


def test_unreadable_file_is_skipped_with_warning(tmp_path, monkeypatch, caplog):
    root = os.path.realpath(tmp_path)
    readable = write_file(Path(root) / "readable", "x")
    unreadable = write_file(Path(root) / "secret", "y")
    _deny_read(monkeypatch, {unreadable})

    with caplog.at_level(logging.WARNING):
        records = FileScanner().scan(root, {})

    assert [r.path for r in records] == [readable]
    assert f"Cannot read, skipping: {unreadable}" in caplog.text


def test_unreadable_directory_is_skipped_not_fatal(tmp_path, monkeypatch):
    root = os.path.realpath(tmp_path)
    kept = write_file(Path(root) / "a" / "f", "x")
    write_file(Path(root) / "locked" / "g", "y")
    _deny_read(monkeypatch, {os.path.join(root, "locked")})

    records = FileScanner().scan(root, {})

    assert [r.path for r in records] == [kept]


def test_records_carry_clock_and_mtime(tmp_path):
    root = os.path.realpath(tmp_path)
    path = write_file(Path(root) / "dir" / "test.txt", "123", mtime=1_500_000)
    clock = FakeClock(2_000_000)

    records = FileScanner(hash_method=HashMethod.MD5, clock=clock).scan(root, {})

    assert records == [
        FileRecord(
            path=path,
            checksum=bytes.fromhex(MD5_OF_123),
            checksum_time=2_000_000,
            modified_time=1_500_000,
            ok=True,
        )
    ]


def test_records_are_in_sorted_depth_first_order(tmp_path):
    root = os.path.realpath(tmp_path)
    for rel in ["b/2", "a/1", "c", "a/z/3"]:
        write_file(Path(root) / rel, rel)

    paths = [r.path for r in FileScanner().scan(root, {})]

    assert paths == [os.path.join(root, rel) for rel in ["a/1", "a/z/3", "b/2", "c"]]


def test_scan_accepts_a_single_file_root(tmp_path):
    path = write_file(tmp_path / "only.txt", "123")

    records = FileScanner(hash_method="md5").scan(path, {})

    assert len(records) == 1
    assert records[0].checksum.hex() == MD5_OF_123


class TestMismatchClassification:
    """Changed content is ok only when the modification time moved forward."""

    def _previous(self, path: str, modified_time: int) -> dict[str, FileRecord]:
        return {
            path: make_record(
                path,
                checksum=b"\xff" * 16,
                checksum_time=modified_time + 10,
                modified_time=modified_time,
            )
        }

    def test_unchanged_content_is_ok(self, tmp_path):
        path = write_file(tmp_path / "f", "123", mtime=1000)
        previous = {
            path: make_record(
                path, checksum=bytes.fromhex(MD5_OF_123), modified_time=5000
            )
        }

        records = FileScanner(hash_method="md5").scan(path, previous)

        assert records[0].ok is True

    def test_changed_with_newer_mtime_is_ok(self, tmp_path, caplog):
        path = write_file(tmp_path / "f", "1234", mtime=2000)

        with caplog.at_level(logging.WARNING):
            records = FileScanner(hash_method="md5").scan(path, self._previous(path, 1000))

        assert records[0].ok is True
        assert "Checksum mismatch" not in caplog.text

    def test_changed_with_same_mtime_is_suspicious(self, tmp_path, caplog):
        path = write_file(tmp_path / "f", "1234", mtime=1000)

        with caplog.at_level(logging.WARNING):
            records = FileScanner(hash_method="md5").scan(path, self._previous(path, 1000))

        assert records[0].ok is False
        assert records[0].modified_time == 1000
        assert f"Checksum mismatch without a newer modification time: {path}" in caplog.text

    def test_changed_with_older_mtime_is_suspicious(self, tmp_path):
        path = write_file(tmp_path / "f", "1234", mtime=500)

        records = FileScanner(hash_method="md5").scan(path, self._previous(path, 1000))

        assert records[0].ok is False

    def test_suspicious_record_still_carries_new_checksum(self, tmp_path):
        path = write_file(tmp_path / "f", "1234", mtime=1000)

        records = FileScanner(hash_method="md5").scan(path, self._previous(path, 1000))

        assert records[0].checksum == compute_checksum(path, "md5")


class TestFailurePropagation:
    def test_unlistable_directory_raises(self, tmp_path, monkeypatch):
        root = os.path.realpath(tmp_path)
        write_file(Path(root) / "ok" / "f", "x")
        broken = os.path.join(root, "broken")
        os.mkdir(broken)

        real_listdir = os.listdir

        def fake_listdir(path):
            if path == broken:
                raise PermissionError(13, "Permission denied", path)
            return real_listdir(path)

        monkeypatch.setattr(scanner_module.os, "listdir", fake_listdir)

        with pytest.raises(ScanError) as exc_info:
            FileScanner().scan(root, {})

        assert exc_info.value.path == broken

    def test_checksum_failure_raises(self, tmp_path, monkeypatch):
        root = os.path.realpath(tmp_path)
        write_file(Path(root) / "f", "x")

        def failing_checksum(*args, **kwargs):
            raise OSError(5, "Input/output error")

        monkeypatch.setattr(scanner_module, "compute_checksum", failing_checksum)

        with pytest.raises(ScanError):
            FileScanner().scan(root, {})

    def test_failure_is_reported_at_every_level(self, tmp_path, monkeypatch, caplog):
        root = os.path.realpath(tmp_path)
        bad = write_file(Path(root) / "a" / "b" / "bad", "x")

        def failing_checksum(*args, **kwargs):
            raise OSError(5, "Input/output error")

        monkeypatch.setattr(scanner_module, "compute_checksum", failing_checksum)

        with caplog.at_level(logging.ERROR):
            with pytest.raises(ScanError):
                FileScanner().scan(root, {})

        assert f"Unable to checksum: {bad}" in caplog.text
        assert f"Unable to checksum: {os.path.join(root, 'a', 'b')}" in caplog.text
        assert f"Unable to checksum: {os.path.join(root, 'a')}" in caplog.text


def test_invalid_hash_method_rejected():
    with pytest.raises(ValueError):
        FileScanner(hash_method="sha1")


class _StatFailingOs:
    """Stands in for the os module, failing os.stat for one path."""

    def __init__(self, failing_path: str):
        self._failing_path = failing_path

    def __getattr__(self, name):
        return getattr(os, name)

    def stat(self, path, *args, **kwargs):
        if path == self._failing_path:
            raise OSError(5, "Input/output error", path)
        return os.stat(path, *args, **kwargs)


def test_stat_failure_raises(tmp_path, monkeypatch):
    root = os.path.realpath(tmp_path)
    write_file(Path(root) / "a", "x")
    broken = write_file(Path(root) / "b", "y")

    monkeypatch.setattr(scanner_module, "os", _StatFailingOs(broken))

    with pytest.raises(ScanError) as exc_info:
        FileScanner().scan(root, {})

    assert exc_info.value.path == broken


def test_undecodable_file_name_is_recorded(tmp_path):
    root = os.path.realpath(tmp_path)
    raw_path = os.path.join(os.fsencode(root), b"bad\xff.txt")
    with open(raw_path, "wb") as f:
        f.write(b"123")

    records = FileScanner(hash_method="md5").scan(root, {})

    assert [r.path for r in records] == [os.fsdecode(raw_path)]
    assert records[0].checksum.hex() == MD5_OF_123


def test_out_of_range_mtime_is_reported_raw(tmp_path, caplog):
    path = write_file(tmp_path / "f", "1234")
    far_future = 10**12
    previous = {
        path: make_record(path, checksum=b"\xff" * 16, checksum_time=far_future, modified_time=far_future)
    }
    os.utime(path, (1000, 1000))

    with caplog.at_level(logging.WARNING):
        records = FileScanner(hash_method="md5").scan(path, previous)

    assert records[0].ok is False
    assert str(far_future) in caplog.text
