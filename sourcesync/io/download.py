import shutil
import tarfile
import tempfile

from pathlib import Path
from typing import Optional
from urllib.parse import quote

import requests

from sourcesync.constants import API_URL, GITHUB_API_VERSION, SERVER_URL
from sourcesync.exceptions import DownloadError
from sourcesync.redaction import get_logger
from sourcesync.utils import RetryHelper

logger = get_logger(__name__)

REQUEST_TIMEOUT = 600


def get_api_url(server_url: str = SERVER_URL) -> str:
    """REST API root for a server: api.github.com, or <server>/api/v3 for GitHub Enterprise."""
    server_url = server_url.rstrip("/")
    if server_url == SERVER_URL:
        return API_URL
    return f"{server_url}/api/v3"


# https://docs.github.com/en/rest/repos/contents?apiVersion=2022-11-28#download-a-repository-archive-tar
def download_archive(
    auth_token: str, owner: str, name: str, ref: str, server_url: str = SERVER_URL
) -> bytes:
    url = (
        f"{get_api_url(server_url)}/repos/{quote(owner, safe='')}/"
        f"{quote(name, safe='')}/tarball/{quote(ref, safe='/')}"
    )
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": GITHUB_API_VERSION,
    }
    if auth_token:
        headers["Authorization"] = f"token {auth_token}"

    logger.debug(f"Downloading {url}")
    try:
        response = requests.get(url, headers=headers, timeout=REQUEST_TIMEOUT)
    except requests.RequestException as e:
        raise DownloadError(f"Unable to download repository archive: {e}") from e
    if response.status_code != 200:
        raise DownloadError(
            f"Unexpected response from GitHub API. Status: {response.status_code}"
        )
    return response.content


def extract_archive(archive_path: Path, extract_path: Path) -> Path:
    """
    Extract a repository tarball and return its single top-level directory.

    GitHub archives wrap the tree in one `<owner>-<repo>-<short sha>` folder.
    """
    with tarfile.open(archive_path) as f:
        f.extractall(path=extract_path, filter="data")

    entries = list(extract_path.iterdir())
    if len(entries) != 1 or not entries[0].is_dir():
        raise DownloadError("Expected exactly one directory inside archive")
    return entries[0]


def download_repository(
    auth_token: str,
    owner: str,
    name: str,
    ref: str,
    commit: str,
    repository_path: Path,
    server_url: str = SERVER_URL,
    retry: Optional[RetryHelper] = None,
) -> None:
    """
    Materialize `commit` (or `ref` when no commit is given) into
    `repository_path` without any git metadata.

    Raises:
        DownloadError: If the download keeps failing or the archive layout is unexpected
    """
    retry = retry or RetryHelper()
    repository_path = Path(repository_path)

    with tempfile.TemporaryDirectory(prefix="sourcesync-") as tmp:
        archive_path = Path(tmp) / "archive.tar.gz"
        archive_path.write_bytes(
            retry.execute(
                lambda: download_archive(
                    auth_token, owner, name, commit or ref, server_url
                )
            )
        )

        extract_path = Path(tmp) / "extract"
        extract_path.mkdir()
        try:
            archive_root = extract_archive(archive_path, extract_path)
        except tarfile.TarError as e:
            raise DownloadError(f"Unable to extract repository archive: {e}")

        # The folder name includes the short SHA
        logger.info(f"Resolved version {archive_root.name}")

        for entry in archive_root.iterdir():
            shutil.move(str(entry), str(repository_path / entry.name))
