from abc import ABC, abstractmethod
from pathlib import Path
from typing import List

from mariadb_backup.utils.datatypes import Backup


class Backend(ABC):
    """
    ABC for backend implementations.
    Implements how to list and delete existing backups.
    """

    @abstractmethod
    def remove(self, backup: Backup or Path or str) -> None:
        """
        Removes the backup.
        :param backup: The backup to remove.
        """
        pass

    @abstractmethod
    def get_existing_backups(self) -> List[str]:
        """
        Returns a list of existing backups.
        """
        pass

    @abstractmethod
    def cleanup(self, days: int) -> List[Path]:
        """
        Removes compressed backups older than the given amount of days.
        :param days: retention threshold
        :return: removed backups
        """
        pass
