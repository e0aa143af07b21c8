import pytest

from checksummer.infrastructure import RunLock, RunLockError


def test_lock_excludes_second_holder(tmp_path):
    lock_path = tmp_path / "run.lock"

    with RunLock(lock_path) as first:
        assert first.locked
        with pytest.raises(RunLockError):
            RunLock(lock_path).acquire()

    assert not first.locked


def test_lock_can_be_retaken_after_release(tmp_path):
    lock_path = tmp_path / "run.lock"
    lock = RunLock(lock_path)

    lock.acquire()
    lock.release()

    with RunLock(lock_path) as again:
        assert again.locked


def test_release_without_acquire_is_noop(tmp_path):
    RunLock(tmp_path / "run.lock").release()


def test_unopenable_lock_file(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x")

    with pytest.raises(RunLockError):
        RunLock(blocker / "run.lock").acquire()
