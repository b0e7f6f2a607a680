"""Single-holder backup lock backed by a PID file."""

import os
from pathlib import Path
from typing import Optional

import psutil

from .._utils import logger
from .exceptions import BackupAlreadyRunningError, StepFailedError


class BackupLock:
    """PID-bearing lock file signalling that a backup is in progress.

    A lock file whose PID does not belong to a live process is stale and is
    discarded on acquire. Creation is exclusive, so two invocations racing on
    a stale lock cannot both succeed.
    """

    def __init__(self, path: Path, pid: Optional[int] = None):
        self.path = Path(path)
        self.pid = pid if pid is not None else os.getpid()
        self._held = False

    @property
    def held(self) -> bool:
        return self._held

    def read_holder(self) -> Optional[int]:
        """PID recorded in the lock file, None if missing or unparsable."""
        try:
            content = self.path.read_text().strip()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning(f"Could not read lock file {self.path}: {e}")
            return None
        try:
            return int(content)
        except ValueError:
            return None

    def live_holder(self) -> Optional[int]:
        """PID of a live process holding the lock, or None.

        A lock carrying our own PID was left by an earlier run whose PID has
        been reused, so it is stale.
        """
        holder = self.read_holder()
        if holder is not None and holder != self.pid and psutil.pid_exists(holder):
            return holder
        return None

    def is_locked(self) -> bool:
        return self.live_holder() is not None

    def acquire(self) -> None:
        holder = self.live_holder()
        if holder is not None:
            raise BackupAlreadyRunningError(holder)

        try:
            if self.path.exists():
                logger.info("Removing stale lock file")
                self.path.unlink(missing_ok=True)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            raise BackupAlreadyRunningError(self.read_holder() or -1)
        except OSError as e:
            raise StepFailedError("create lock", e) from e

        with os.fdopen(fd, "w") as f:
            f.write(f"{self.pid}\n")
        self._held = True
        logger.info(f"Created lock file with PID {self.pid}")

    def release(self) -> None:
        if not self._held:
            return
        # Never remove a lock that was taken over by someone else
        if self.read_holder() == self.pid:
            self.path.unlink(missing_ok=True)
        self._held = False

    def __enter__(self) -> "BackupLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
