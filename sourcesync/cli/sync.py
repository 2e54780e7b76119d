"""cli commands to sync a repository and to clean up after it"""

import sys
from pathlib import Path
from typing import Optional

import click
from git.exc import GitCommandError

from sourcesync.cli.utils.logging import logger
from sourcesync.config import get_server_url
from sourcesync.exceptions import SourceSyncError
from sourcesync.model import Settings
from sourcesync.state import StateStore
from sourcesync.sync import cleanup, synchronize


@click.command(name="sync")
@click.argument("repository")
@click.option(
    "--path",
    "-p",
    "repository_path",
    type=click.Path(file_okay=True, dir_okay=True, path_type=Path),
    default=".",
    show_default=True,
    help="Directory to sync the repository into.",
)
@click.option("--ref", default="", help="Branch, tag or fully qualified ref.")
@click.option("--commit", default="", help="Commit SHA to check out.")
@click.option(
    "--clean/--no-clean",
    default=True,
    show_default=True,
    help="Discard untracked files and local changes in a reused repository.",
)
@click.option(
    "--fetch-depth",
    type=int,
    default=1,
    show_default=True,
    help="Number of commits to fetch, 0 fetches the full history.",
)
@click.option("--lfs/--no-lfs", default=False, help="Download Git-LFS files.")
@click.option(
    "--token",
    envvar="SOURCESYNC_TOKEN",
    default="",
    help="Token used to fetch the repository, required (env: SOURCESYNC_TOKEN).",
)
@click.option(
    "--persist-credentials/--no-persist-credentials",
    default=False,
    help="Keep the token in the local git config after the sync.",
)
@click.option(
    "--server-url",
    default=None,
    help="Git server root, defaults to the configured server (https://github.com).",
)
def sync_command(
    repository: str,
    repository_path: Path,
    ref: str,
    commit: str,
    clean: bool,
    fetch_depth: int,
    lfs: bool,
    token: str,
    persist_credentials: bool,
    server_url: Optional[str],
):
    """Sync REPOSITORY (owner/name) into a local directory.

    Example:

      sourcesync sync acme/widgets --ref refs/heads/main --path widgets
    """
    try:
        settings = Settings.from_repository(
            repository,
            repository_path=repository_path,
            ref=ref,
            commit=commit,
            clean=clean,
            fetch_depth=fetch_depth,
            lfs=lfs,
            auth_token=token,
            persist_credentials=persist_credentials,
            server_url=server_url or get_server_url(),
        )
    except ValueError as e:
        logger.error(f"Invalid arguments: {e}")
        sys.exit(1)

    try:
        synchronize(settings)
    except (SourceSyncError, GitCommandError) as e:
        logger.error(f"Failed to sync {repository}: {e}")
        sys.exit(1)


@click.command(name="cleanup")
@click.option(
    "--path",
    "-p",
    "repository_path",
    default=None,
    help="Repository to clean up, defaults to the path recorded by the last sync.",
)
@click.option("--server-url", default=None, help="Git server root used by the sync.")
def cleanup_command(repository_path: Optional[str], server_url: Optional[str]):
    """Remove the auth header a sync left in the local git config."""
    if repository_path is None:
        repository_path = StateStore().get_repository_path()
        if not repository_path:
            logger.info("No repository path recorded, nothing to clean up")
            return

    cleanup(repository_path, server_url=server_url or get_server_url())
