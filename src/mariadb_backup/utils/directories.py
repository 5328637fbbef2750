import os
from pathlib import Path


def ensure_directory(directory: Path) -> bool:
    """
    Create the directory and its parents if it does not exist.
    :param directory: directory to create
    :return: True if the directory has been created, False if it already existed.
    """
    if os.path.isdir(directory):
        return False
    os.makedirs(directory, exist_ok=True)
    return True
