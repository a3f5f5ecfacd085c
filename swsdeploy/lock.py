# -*- coding: utf-8 -*-
"""
    swsdeploy.lock
    ~~~~~~~~~~~~~~
    Keeps two environment updates from running at the same time.

"""
import errno
import fcntl
import json
import os
import signal
import time

import swsdeploy.utils as utils


class LockFailedError(RuntimeError):
    """Signal that a locking attempt failed."""

    pass


class Lock:
    """
    File-based exclusive lock.

    When the lock is already held, waits up to `timeout` minutes for it to be
    released before raising :class:`LockFailedError`. A `timeout` of 0 fails
    immediately. The holder's name, pid and reason are written to the lock
    file so that a waiting operator can see who is in the way.
    """

    DEFAULT_TIMEOUT_IN_MINS = 10
    MAX_TIMEOUT_IN_MINS = 60
    LOCK_PERMISSIONS = 0o666

    def __init__(
        self,
        lock_file,
        name="exclusion",
        reason="no reason given",
        timeout=DEFAULT_TIMEOUT_IN_MINS,
    ):
        self.logger = utils.get_logger()

        self.lock_file = lock_file
        self.name = name
        self.reason = reason
        self.timeout = timeout
        self.lock_fd = None

        self._ensure_lock_dir_exists()
        self._ensure_sane_timeout()

    def __enter__(self):
        self._get_lock()
        return self

    def __exit__(self, *args):
        if self.lock_fd is not None:
            self._write_lock_file({})
            fcntl.lockf(self.lock_fd, fcntl.LOCK_UN)
            os.close(self.lock_fd)
        self.lock_fd = None

    def _get_lock(self):
        try:
            self.lock_fd = self._create_or_open_file(self.lock_file)
        except OSError as e:
            self.logger.warning("Could not acquire %s lock. Aborting", self.name)
            raise LockFailedError(e)

        try:
            fcntl.lockf(self.lock_fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            if not self.timeout:
                reason = self._get_lock_reason()
                self._close()
                raise LockFailedError("%s\nAborting" % reason)

            self.logger.warning(
                "%s Will wait up to %s minute(s) for the lock to be released.",
                self._get_lock_reason(),
                self.timeout,
            )
            self._wait_for_lock()

        self._write_lock_file(
            {
                "locker": utils.get_real_username(),
                "pid": os.getpid(),
                "timestamp_utc": time.asctime(time.gmtime()),
                "reason": self.reason,
            }
        )

    def _wait_for_lock(self):
        """
        Perform a blocking lockf() call, raising LockFailedError once the
        timeout period has elapsed.
        """
        deadline = time.time() + self.timeout * 60
        interval = 30

        def deadline_check(*args):
            if time.time() >= deadline:
                raise LockFailedError(
                    "Failed to acquire lock after waiting for %s minute(s); %s\nAborting"
                    % (self.timeout, self._get_lock_reason())
                )
            signal.alarm(interval)

        previous = signal.signal(signal.SIGALRM, deadline_check)
        signal.alarm(interval)
        try:
            fcntl.lockf(self.lock_fd, fcntl.LOCK_EX)
        except LockFailedError:
            self._close()
            raise
        finally:
            signal.alarm(0)
            signal.signal(signal.SIGALRM, previous)

    def _close(self):
        os.close(self.lock_fd)
        self.lock_fd = None

    def _create_or_open_file(self, lock_file):
        try:
            return os.open(
                lock_file, os.O_RDWR | os.O_CREAT | os.O_EXCL, Lock.LOCK_PERMISSIONS
            )
        except OSError as e:
            if e.errno == errno.EEXIST:
                # Already created, possibly by another user
                return os.open(lock_file, os.O_RDWR, Lock.LOCK_PERMISSIONS)
            raise

    def _write_lock_file(self, info):
        os.ftruncate(self.lock_fd, 0)
        os.pwrite(self.lock_fd, json.dumps(info, indent=4).encode("UTF-8"), 0)

    def _get_lock_reason(self) -> str:
        try:
            sb = os.fstat(self.lock_fd)
            info = json.loads(os.pread(self.lock_fd, sb.st_size, 0).decode("UTF-8"))
        except (OSError, ValueError) as e:
            self.logger.warning(
                "Caught %s while reading lock info from %s", e, self.lock_file
            )
            info = {}

        return '%s is locked by %s (pid %s) on %s; reason is "%s".' % (
            self.name,
            info.get("locker", "?"),
            info.get("pid", "?"),
            info.get("timestamp_utc", "?"),
            info.get("reason", "?"),
        )

    def _ensure_lock_dir_exists(self):
        lock_dir = os.path.dirname(self.lock_file)
        if lock_dir:
            utils.mkdir_p(lock_dir)

    def _ensure_sane_timeout(self):
        if not 0 <= self.timeout <= Lock.MAX_TIMEOUT_IN_MINS:
            self.logger.warning(
                "Supplied timeout for %s lock needs to be in range [0, %s]. "
                "Timeout reset to %s minutes",
                self.name,
                Lock.MAX_TIMEOUT_IN_MINS,
                Lock.DEFAULT_TIMEOUT_IN_MINS,
            )
            self.timeout = Lock.DEFAULT_TIMEOUT_IN_MINS
