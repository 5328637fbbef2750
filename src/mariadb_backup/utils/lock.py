"""
Advisory lock over the backup directory.
"""
import errno
import fcntl
import os
from pathlib import Path
from typing import Optional, TextIO

LOCK_FILE_NAME = '.mariadb-backup.lock'


class BackupDirLocked(Exception):
    """
    Another process holds the lock of the backup directory.
    """

    def __init__(self, lock_file: Path, pid: Optional[str] = None):
        self.lock_file = lock_file
        self.pid = pid
        holder = f' by pid {pid}' if pid else ''
        super().__init__(f'Backup directory is locked{holder} ({lock_file})')


class BackupDirLock:
    """
    Exclusive flock on <backup_dir>/.mariadb-backup.lock.
    Use it as a context manager. Does not block.
    """

    def __init__(self, backup_dir: Path):
        self.lock_file = Path(backup_dir) / LOCK_FILE_NAME
        self._fh: Optional[TextIO] = None

    @property
    def locked(self) -> bool:
        return self._fh is not None

    def lock(self):
        fh = open(self.lock_file, 'a+')
        try:
            fcntl.flock(fh.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError as e:
            fh.seek(0)
            pid = fh.read().strip() or None
            fh.close()
            if e.errno in (errno.EWOULDBLOCK, errno.EACCES):
                raise BackupDirLocked(self.lock_file, pid)
            raise
        fh.seek(0)
        fh.truncate()
        fh.write(str(os.getpid()))
        fh.flush()
        self._fh = fh

    def unlock(self):
        if self._fh is None:
            return
        fcntl.flock(self._fh.fileno(), fcntl.LOCK_UN)
        self._fh.close()
        self._fh = None

    def __enter__(self) -> 'BackupDirLock':
        self.lock()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.unlock()
