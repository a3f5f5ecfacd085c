import json
import os
import subprocess
import sys

import pytest

from swsdeploy import lock

# Holds an exclusive lock on argv[1] until stdin is closed
HOLD_LOCK_SCRIPT = """
import fcntl, os, sys
fd = os.open(sys.argv[1], os.O_RDWR | os.O_CREAT)
fcntl.lockf(fd, fcntl.LOCK_EX)
print("locked", flush=True)
sys.stdin.read()
"""


@pytest.fixture
def held_lock(tmp_path):
    lock_file = str(tmp_path / "update.lock")
    proc = subprocess.Popen(
        [sys.executable, "-c", HOLD_LOCK_SCRIPT, lock_file],
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        text=True,
    )
    assert proc.stdout.readline().strip() == "locked"
    try:
        yield lock_file
    finally:
        proc.stdin.close()
        proc.wait()


def test_lock_create_lock_dir(tmp_path):
    lock_file = str(tmp_path / "a" / "path" / "to" / "lock")

    lock.Lock(lock_file)

    assert os.path.isdir(os.path.dirname(lock_file))


def test_lock_records_reason(tmp_path):
    lock_file = str(tmp_path / "update.lock")

    with lock.Lock(lock_file, name="update-environment", reason="updating 01dev"):
        with open(lock_file) as f:
            info = json.load(f)
        assert info["reason"] == "updating 01dev"
        assert info["pid"] == os.getpid()

    with open(lock_file) as f:
        assert json.load(f) == {}


def test_lock_fails_fast_without_timeout(held_lock):
    with pytest.raises(lock.LockFailedError):
        with lock.Lock(held_lock, timeout=0):
            pass


def test_lock_is_reusable_after_release(tmp_path):
    lock_file = str(tmp_path / "update.lock")

    with lock.Lock(lock_file, timeout=0):
        pass
    with lock.Lock(lock_file, timeout=0):
        pass


def test_lock_resets_bad_timeout(tmp_path):
    to_lock = lock.Lock(str(tmp_path / "update.lock"), timeout=1000)

    assert to_lock.timeout == lock.Lock.DEFAULT_TIMEOUT_IN_MINS
