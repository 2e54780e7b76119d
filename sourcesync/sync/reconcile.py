"""
Decide whether a pre-existing directory can be reused for a sync.

An existing repository is only kept when it is provably equivalent to a fresh
checkout: same origin URL, detached HEAD, no local or remote-tracking
branches left, and (with `clean`) a successful clean and hard reset. Anything
else, including any error along the way, clears the directory's contents.
"""

from pathlib import Path

from sourcesync.constants import LOCK_FILES
from sourcesync.core.interfaces import Available, GatewayRef, Unavailable, VcsGateway
from sourcesync.io.files import clear_directory, try_remove_path
from sourcesync.redaction import get_logger

logger = get_logger(__name__)


def _remove_lock_files(repository_path: Path) -> None:
    for lock_name in LOCK_FILES:
        # failures are logged at debug level by try_remove_path
        try_remove_path(repository_path / ".git" / lock_name)


def _prepare_repository(gateway: VcsGateway, repository_path: Path, clean: bool) -> bool:
    """
    Bring a matching repository into a reusable state.

    Returns:
        True if the repository must be recreated instead
    """
    _remove_lock_files(repository_path)

    try:
        if not gateway.is_detached():
            gateway.checkout_detach()

        # refs/heads/*
        for branch in gateway.branch_list(remote=False):
            gateway.branch_delete(False, branch)

        # refs/remotes/origin/*, to avoid conflicts with the next fetch
        for branch in gateway.branch_list(remote=True):
            gateway.branch_delete(True, branch)

        if clean:
            remove = False
            if not gateway.try_clean():
                logger.debug(
                    "The clean command failed. This might be caused by: "
                    "1) path too long, 2) permission issue, or 3) file in use. "
                    "For further investigation, manually run 'git clean -ffdx' "
                    f"on the directory '{repository_path}'."
                )
                remove = True
            elif not gateway.try_reset():
                remove = True

            if remove:
                logger.warning(
                    "Unable to clean or reset the repository. "
                    "The repository will be recreated instead."
                )
            return remove
    except Exception as e:
        logger.warning(
            "Unable to prepare the existing repository. "
            f"The repository will be recreated instead. {e}"
        )
        return True

    return False


def reconcile(
    gateway_ref: GatewayRef, repository_path: Path, repository_url: str, clean: bool
) -> bool:
    """
    Reuse or clear an existing repository directory.

    Args:
        gateway_ref: Available(gateway) or Unavailable()
        repository_path: Directory that existed before the sync started
        repository_url: URL the origin remote must point at to be reused
        clean: Whether untracked files and local changes must be discarded

    Returns:
        True if the directory's contents were deleted
    """
    match gateway_ref:
        case Unavailable():
            remove = True
        case Available(gateway=gateway):
            if not (repository_path / ".git").is_dir():
                remove = True
            elif gateway.try_get_fetch_url() != repository_url:
                remove = True
            else:
                remove = _prepare_repository(gateway, repository_path, clean)
        case _:
            raise TypeError(f"Unexpected gateway reference: {gateway_ref!r}")

    if remove:
        # Never the directory itself, it might be the current working directory
        clear_directory(repository_path)
    return remove
