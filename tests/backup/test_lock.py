"""Tests for the backup lock."""

import os
import pytest
from unittest.mock import patch

from eventstore_backup.backup.exceptions import BackupAlreadyRunningError, StepFailedError
from eventstore_backup.backup.lock import BackupLock


def test_acquire_writes_pid_and_release_removes(tmp_path):
    lock_path = tmp_path / "backup.lock"
    lock = BackupLock(lock_path)

    lock.acquire()
    assert lock.held
    assert lock_path.read_text().strip() == str(os.getpid())

    lock.release()
    assert not lock.held
    assert not lock_path.exists()


def test_live_holder_blocks_acquire(tmp_path):
    lock_path = tmp_path / "backup.lock"
    lock_path.write_text("4242\n")

    with patch("eventstore_backup.backup.lock.psutil.pid_exists", return_value=True):
        lock = BackupLock(lock_path)
        assert lock.is_locked()
        with pytest.raises(BackupAlreadyRunningError) as exc_info:
            lock.acquire()

    assert exc_info.value.pid == 4242
    assert "Backup is already running (PID: 4242)" in str(exc_info.value)
    assert lock_path.read_text().strip() == "4242"


def test_stale_lock_is_replaced(tmp_path):
    lock_path = tmp_path / "backup.lock"
    lock_path.write_text("4242\n")

    with patch("eventstore_backup.backup.lock.psutil.pid_exists", return_value=False):
        lock = BackupLock(lock_path, pid=1234)
        assert not lock.is_locked()
        lock.acquire()

    assert lock_path.read_text().strip() == "1234"
    lock.release()
    assert not lock_path.exists()


def test_garbage_lock_content_is_stale(tmp_path):
    lock_path = tmp_path / "backup.lock"
    lock_path.write_text("not-a-pid")

    lock = BackupLock(lock_path, pid=1234)
    assert lock.read_holder() is None
    lock.acquire()
    assert lock_path.read_text().strip() == "1234"


def test_release_leaves_foreign_lock(tmp_path):
    lock_path = tmp_path / "backup.lock"
    lock = BackupLock(lock_path, pid=1234)
    lock.acquire()

    lock_path.write_text("9999\n")
    lock.release()

    assert lock_path.exists()


def test_context_manager(tmp_path):
    lock_path = tmp_path / "backup.lock"
    with BackupLock(lock_path) as lock:
        assert lock.held
        assert lock_path.exists()
    assert not lock_path.exists()


def test_own_pid_lock_is_stale(tmp_path):
    lock_path = tmp_path / "backup.lock"
    lock_path.write_text(f"{os.getpid()}\n")

    with patch("eventstore_backup.backup.lock.psutil.pid_exists", return_value=True):
        lock = BackupLock(lock_path)
        assert not lock.is_locked()
        lock.acquire()

    assert lock.held
    assert lock_path.read_text().strip() == str(os.getpid())
    lock.release()
    assert not lock_path.exists()


def test_unusable_lock_directory(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    lock = BackupLock(blocker / "backup.lock")

    with pytest.raises(StepFailedError, match="create lock failed"):
        lock.acquire()
    assert not lock.held
