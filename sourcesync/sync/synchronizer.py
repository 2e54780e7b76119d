"""
Top-level orchestration of a sync and of its later credential cleanup.

Exactly one of two flows runs per `synchronize` call:

    - gateway flow: a local git repository is initialized or reused, fetched
      and checked out, with the auth header configured only for the duration
      of the fetch/checkout sequence
    - fallback flow: no usable git, the tree is downloaded through the REST API
      without any git metadata

`synchronize` is not safe to run concurrently against the same path; callers
must hold exclusive access to the path for the duration of the call.
"""

import os
from pathlib import Path
from typing import Optional, Union

from sourcesync.constants import (
    MINIMUM_GIT_VERSION,
    REMOTE_NAME,
    SERVER_URL,
    auth_config_key,
)
from sourcesync.core.interfaces import (
    Available,
    Downloader,
    GatewayFactory,
    GatewayRef,
    Unavailable,
    VcsGateway,
)
from sourcesync.exceptions import GatewayUnavailableError
from sourcesync.git.gateway import create_gateway
from sourcesync.git.refs import RemoteRefs, get_checkout_info, get_ref_spec
from sourcesync.io.download import download_repository
from sourcesync.io.files import remove_path
from sourcesync.model.settings import Settings
from sourcesync.redaction import get_logger
from sourcesync.state import StateStore
from sourcesync.sync.credentials import credential_bracket, remove_git_config
from sourcesync.sync.reconcile import reconcile

logger = get_logger(__name__)


def acquire_gateway(settings: Settings, gateway_factory: GatewayFactory) -> GatewayRef:
    """
    Construct a gateway for the repository path.

    Raises:
        GatewayUnavailableError: Only when LFS was requested, since LFS objects
            cannot be fetched without git
    """
    logger.info(f"Working directory is '{settings.repository_path}'")
    try:
        return Available(gateway_factory(settings.repository_path, settings.lfs))
    except GatewayUnavailableError as e:
        if settings.lfs:
            raise
        logger.debug(f"Git is not usable: {e}")
        return Unavailable(reason=str(e))


def _prepare_path(repository_path: Path) -> bool:
    """
    Make sure the repository path is a directory.

    Returns:
        True if the directory existed before
    """
    # A file (or dangling link) in the way
    if os.path.lexists(repository_path) and not repository_path.is_dir():
        remove_path(repository_path)

    if repository_path.is_dir():
        return True
    repository_path.mkdir(parents=True)
    return False


def _sync_with_gateway(
    settings: Settings, gateway: VcsGateway, state_store: StateStore
) -> None:
    repository_path = settings.repository_path
    config_key = settings.auth_config_key

    # Read back by cleanup in a later invocation
    state_store.set_repository_path(repository_path)

    if not (repository_path / ".git").is_dir():
        gateway.init()
        gateway.remote_add(REMOTE_NAME, settings.repository_url)

    if not gateway.try_disable_automatic_gc():
        logger.warning(
            "Unable to turn off git automatic garbage collection. "
            "The git fetch operation may trigger garbage collection and cause a delay."
        )

    # A previous run may have persisted (or failed to remove) the header
    remove_git_config(gateway, config_key)

    with credential_bracket(
        gateway, settings.auth_token, config_key, persist=settings.persist_credentials
    ):
        if settings.lfs:
            gateway.lfs_install()

        ref_spec = get_ref_spec(settings.ref, settings.commit)
        gateway.fetch(settings.fetch_depth, ref_spec)

        checkout_info = get_checkout_info(
            settings.ref, settings.commit, RemoteRefs.from_gateway(gateway)
        )

        # An explicit lfs fetch downloads objects in parallel, checkout alone
        # would fetch them one at a time
        if settings.lfs:
            gateway.lfs_fetch(checkout_info.start_point or checkout_info.ref)

        gateway.checkout(checkout_info.ref, checkout_info.start_point)

        gateway.log1()


def synchronize(
    settings: Settings,
    state_store: Optional[StateStore] = None,
    gateway_factory: GatewayFactory = create_gateway,
    downloader: Downloader = download_repository,
) -> None:
    """
    Bring `settings.repository_path` to the requested ref/commit.

    Args:
        settings: Inputs of this run
        state_store: Where the repository path is recorded for `cleanup`
            (defaults to the configured state directory)
        gateway_factory: Builds a gateway, raising GatewayUnavailableError when git is unusable
        downloader: REST fallback used when no gateway is available

    Raises:
        GatewayUnavailableError: git is unusable and LFS was requested
        PlaceholderError: the auth placeholder could not be replaced unambiguously
        RefResolutionError, GitCommandError: failures while fetching or checking
            out; the auth header is removed before these leave this function
    """
    logger.info(
        f"Syncing repository: {settings.repository_owner}/{settings.repository_name}"
    )
    repository_path = settings.repository_path

    existed = _prepare_path(repository_path)

    gateway_ref = acquire_gateway(settings, gateway_factory)

    if existed:
        reconcile(gateway_ref, repository_path, settings.repository_url, settings.clean)

    match gateway_ref:
        case Unavailable():
            logger.info("The repository will be downloaded using the GitHub REST API")
            logger.info(
                f"To create a local Git repository instead, add Git "
                f"{MINIMUM_GIT_VERSION} or higher to the PATH"
            )
            downloader(
                settings.auth_token,
                settings.repository_owner,
                settings.repository_name,
                settings.ref,
                settings.commit,
                repository_path,
                server_url=settings.server_url,
            )
        case Available(gateway=gateway):
            _sync_with_gateway(settings, gateway, state_store or StateStore())


def cleanup(
    repository_path: Union[str, Path, None],
    server_url: str = SERVER_URL,
    gateway_factory: GatewayFactory = create_gateway,
) -> None:
    """
    Remove the auth header a previous sync left in `repository_path`.

    Never raises: a path without git metadata, or a missing git, is a no-op,
    and a failed removal is only logged.
    """
    if not repository_path:
        return
    repository_path = Path(repository_path)
    if not (repository_path / ".git" / "config").is_file():
        return

    try:
        gateway = gateway_factory(repository_path, False)
    except GatewayUnavailableError as e:
        logger.debug(f"Skipping credential cleanup: {e}")
        return

    config_key = auth_config_key(server_url)
    try:
        remove_git_config(gateway, config_key)
    except Exception as e:
        logger.warning(f"Failed to remove '{config_key}' from the git config: {e}")
