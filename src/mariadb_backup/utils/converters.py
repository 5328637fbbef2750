"""
helpers for converting values from one format to a different one
"""
import re
from datetime import datetime
from pathlib import Path

TIMESTAMP_FORMAT = '%Y%m%d_%H%M%S'
GZIP_MAGIC = b'\x1f\x8b'

_FILE_NAME_RE = re.compile(r'^(?P<database>.+)_(?P<timestamp>\d{8}_\d{6})\.sql(?P<gz>\.gz)?$')


def parse_timestamp(timestamp: str) -> datetime:
    """
    Convert the given timestamp string to a datetime object.
    Format: TIMESTAMP_FORMAT
    :param timestamp: timestamp to parse
    :return: parsed timestamp
    """
    return datetime.strptime(timestamp, TIMESTAMP_FORMAT)


def format_timestamp(timestamp: datetime) -> str:
    """
    Convert the given datetime object to the correct string.
    :param timestamp: datetime object
    :return: formatted time
    """
    return timestamp.strftime(TIMESTAMP_FORMAT)


def parse_file_name(file_path: str or Path) -> dict:
    """
    Parse the given file_path.
    <database>_<YYYYmmdd_HHMMSS>.sql[.gz]
    :param file_path: path or name of a backup file
    :return: Dictionary with keys: database, timestamp, compressed, path
    """
    match = _FILE_NAME_RE.match(Path(file_path).name)
    if not match:
        raise ValueError(f'Invalid file name: {file_path}')
    try:
        timestamp = parse_timestamp(match.group('timestamp'))
    except ValueError:
        raise ValueError(f'Invalid timestamp in file name: {file_path}')
    return {
        'database': match.group('database'),
        'timestamp': timestamp,
        'compressed': match.group('gz') is not None,
        'path': Path(file_path),
    }


def is_gzip_file(file_path: str or Path) -> bool:
    """
    Check the magic bytes of the given file.
    The file name is not taken into account.
    :param file_path: file to inspect
    :return: True if the file starts with the gzip header
    """
    with open(file_path, 'rb') as f:
        return f.read(len(GZIP_MAGIC)) == GZIP_MAGIC


def format_size(size: int) -> str:
    """
    Human readable file size. (like ls -h)
    :param size: size in bytes
    :return: formatted size
    """
    value = float(size)
    for unit in ('B', 'K', 'M', 'G', 'T'):
        if value < 1024 or unit == 'T':
            return f'{value:.0f}{unit}' if unit == 'B' else f'{value:.1f}{unit}'
        value /= 1024
