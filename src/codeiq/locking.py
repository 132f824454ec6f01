from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from filelock import FileLock, Timeout


@dataclass(frozen=True)
class LockHandle:
    lock: FileLock

    def release(self) -> None:
        if self.lock.is_locked:
            self.lock.release()


def progress_lock(directory: Path) -> FileLock:
    directory.mkdir(parents=True, exist_ok=True)
    return FileLock(str(directory / ".progress.lock"))


def acquire_progress_lock(directory: Path, *, timeout_s: float) -> LockHandle:
    lock = progress_lock(directory)
    try:
        lock.acquire(timeout=timeout_s)
    except Timeout as e:
        raise TimeoutError(f"Progress store is locked: {lock.lock_file}") from e
    return LockHandle(lock=lock)
