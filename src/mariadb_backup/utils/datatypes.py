"""
Contains the class representing backup artifacts.
"""
from datetime import datetime
from pathlib import Path
from typing import Optional

from .converters import format_timestamp, parse_file_name

ALL_DATABASES = 'all_databases'


class Backup:
    """
    A dump of a single database or of the whole server.
    """

    def __init__(self, database: Optional[str] = None, timestamp: Optional[datetime] = None,
                 compressed: bool = False):
        """
        :param database: name of the database. None for all databases.
        :param timestamp: timestamp of the backup. now by default.
        :param compressed: whether the artifact has already been gzipped.
        """
        self.database = database
        self.timestamp = timestamp if timestamp else datetime.now()
        self.compressed = compressed

    @property
    def name(self) -> str:
        """
        database name or all_databases
        """
        return self.database or ALL_DATABASES

    @property
    def all_databases(self) -> bool:
        return self.database is None

    @property
    def path(self) -> Path:
        """
        file name of the backup file
        """
        suffix = '.sql.gz' if self.compressed else '.sql'
        return Path(f'{self.name}_{format_timestamp(self.timestamp)}{suffix}')

    @classmethod
    def from_file_name(cls, file_path: str or Path) -> 'Backup':
        """
        Create a backup object from an existing file name.
        :param file_path: name of the backup file
        :return: parsed backup
        :raises ValueError: if the name does not follow the naming scheme
        """
        data = parse_file_name(file_path)
        database = None if data['database'] == ALL_DATABASES else data['database']
        return cls(database=database, timestamp=data['timestamp'],
                   compressed=data['compressed'])
