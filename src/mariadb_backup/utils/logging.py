import sys
from pathlib import Path

from loguru import logger

FORMAT_STRING = '[{time:YYYY-MM-DD HH:mm:ss}] {message}'


def setup_logging(log_file: Path, log_level: str = 'INFO'):
    """
    Log to stdout and append to the given log file.
    The log file is never rotated.
    :param log_file: log file. The parent directory has to exist.
    :param log_level: minimum level for both sinks
    """
    logger.remove()
    logger.add(sys.stdout,
               format=FORMAT_STRING,
               level=log_level,
               colorize=False)
    logger.add(log_file,
               format=FORMAT_STRING,
               level=log_level,
               mode='a',
               encoding='utf-8',
               backtrace=True,
               diagnose=False)
