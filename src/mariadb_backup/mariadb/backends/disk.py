import os
import time
from pathlib import Path
from typing import List

from loguru import logger

from mariadb_backup.mariadb.backends.base import Backend
from mariadb_backup.utils.converters import parse_file_name
from mariadb_backup.utils.datatypes import Backup

SECONDS_PER_DAY = 24 * 60 * 60


class DiskBackend(Backend):
    """
    Disk backend for handling file based backups on local disk.
    """

    def __init__(self, backup_dir: Path):
        """
        :param backup_dir: main dir for backups
        """
        self.backup_dir = Path(backup_dir)

    def get_existing_backups(self) -> List[str]:
        """
        Get all .sql and .sql.gz files in the backup dir. (not recursive)
        :return: sorted list of file names
        """
        if not os.path.isdir(self.backup_dir):
            return []
        files = [x.name for x in self.backup_dir.iterdir()
                 if x.is_file() and (x.name.endswith('.sql') or x.name.endswith('.sql.gz'))]
        return sorted(files)

    def get_compressed_backups(self) -> List[Path]:
        """
        Get all compressed artifacts which follow the naming scheme.
        Uncompressed or foreign files are ignored.
        :return: list of paths
        """
        backups = []
        for file in self.get_existing_backups():
            try:
                data = parse_file_name(file)
            except ValueError:
                continue
            if data['compressed']:
                backups.append(self.backup_dir / file)
        return backups

    def remove(self, backup: Backup or Path or str) -> None:
        if isinstance(backup, Path) or isinstance(backup, str):
            path = Path(backup)
        else:
            path = backup.path
        os.remove(self.backup_dir / path)

    def cleanup(self, days: int) -> List[Path]:
        """
        Delete compressed backups whose mtime is at least `days` days old.
        0 deletes all compressed backups.
        :param days: retention threshold in days
        :return: deleted files
        """
        if days < 0:
            raise ValueError(f'days must not be negative: {days}')
        cutoff = time.time() - days * SECONDS_PER_DAY
        deleted = []
        for path in self.get_compressed_backups():
            if path.stat().st_mtime > cutoff:
                continue
            self.remove(path.name)
            logger.info(f'Deleted old backup: {path}')
            deleted.append(path)
        return deleted
