"""Filesystem helpers for preparing a repository directory"""

import os
import shutil
from pathlib import Path

from sourcesync.redaction import get_logger

logger = get_logger(__name__)


def remove_path(path: Path) -> None:
    """Remove a file, symlink or directory tree. A missing path is not an error."""
    if path.is_symlink() or (path.exists() and not path.is_dir()):
        path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)


def try_remove_path(path: Path) -> bool:
    """
    Remove a path, reporting failure instead of raising.

    Returns:
        True if the path is gone afterwards, False if it could not be removed
    """
    try:
        remove_path(path)
        return True
    except OSError as e:
        logger.debug(f"Unable to delete '{path}'. {e}")
        return False


def clear_directory(directory: Path) -> int:
    """
    Delete every entry inside a directory but keep the directory itself,
    which may be the current working directory.

    Entries that cannot be removed are logged and skipped.

    Returns:
        Number of entries that could not be removed
    """
    logger.info(f"Deleting the contents of '{directory}'")
    failures = 0
    for name in sorted(os.listdir(directory)):
        entry = directory / name
        if not try_remove_path(entry):
            logger.warning(f"Unable to delete '{entry}'")
            failures += 1
    return failures
