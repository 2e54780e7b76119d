"""
Git command gateway for one working directory.

Every primitive runs the git executable through GitPython's `Git` command
wrapper. Primitives prefixed with `try_` report failure through their return
value; all others raise `git.exc.GitCommandError` on a non-zero exit status.

Usage:
    gateway = create_gateway(Path("/work/repo"), lfs=False)
    gateway.init()
    gateway.remote_add("origin", "https://github.com/acme/widgets")
    gateway.fetch(1, ["+refs/heads/main:refs/remotes/origin/main"])
    gateway.checkout("main", "refs/remotes/origin/main")
"""

import os
import re
import shutil
from pathlib import Path
from typing import List, NamedTuple, Optional

# A missing git executable must surface as GatewayUnavailableError from
# create_gateway, not as an ImportError when this module is loaded
os.environ.setdefault("GIT_PYTHON_REFRESH", "quiet")

from git import Git  # noqa: E402
from git.exc import GitCommandNotFound  # noqa: E402
from packaging.version import InvalidVersion, Version  # noqa: E402

from sourcesync.constants import (  # noqa: E402
    MINIMUM_GIT_LFS_VERSION,
    MINIMUM_GIT_VERSION,
    REMOTE_NAME,
)
from sourcesync.exceptions import GatewayUnavailableError  # noqa: E402
from sourcesync.redaction import get_logger  # noqa: E402
from sourcesync.utils import RetryHelper  # noqa: E402

logger = get_logger(__name__)

GIT_ENVIRONMENT = {
    "GIT_TERMINAL_PROMPT": "0",
    # Disable the Git Credential Manager prompt on Windows
    "GCM_INTERACTIVE": "Never",
}

_VERSION_PATTERN = re.compile(r"(\d+\.\d+(?:\.\d+)?)")


class GitOutput(NamedTuple):
    exit_code: int
    stdout: str


def parse_version(output: str, prefix: str = "") -> Optional[Version]:
    """
    Extract the first dotted version number following `prefix` in a tool's output.

    Examples:
        "git version 2.39.2" -> 2.39.2
        "git version 2.41.0.windows.1" -> 2.41.0
        "git-lfs/3.3.0 (GitHub; linux amd64; go 1.19.8)" with prefix "git-lfs/" -> 3.3.0
    """
    start = output.find(prefix) if prefix else 0
    if start < 0:
        return None
    match = _VERSION_PATTERN.search(output, start + len(prefix))
    if not match:
        return None
    try:
        return Version(match.group(1))
    except InvalidVersion:
        return None


class GitGateway:
    """Runs git primitives in a single working directory."""

    def __init__(
        self,
        working_directory: Path,
        git_path: str,
        retry: Optional[RetryHelper] = None,
    ):
        self._working_directory = Path(working_directory)
        self._git_path = git_path
        self._git = Git(str(self._working_directory))
        self._git.update_environment(**GIT_ENVIRONMENT)
        self._retry = retry or RetryHelper()

    @property
    def working_directory(self) -> Path:
        return self._working_directory

    def _run(self, args: List[str], allow_all_exit_codes: bool = False) -> GitOutput:
        logger.debug(f"[command]{self._git_path} {' '.join(args)}")
        status, stdout, stderr = self._git.execute(
            [self._git_path, *args],
            with_extended_output=True,
            with_exceptions=not allow_all_exit_codes,
        )
        if stderr:
            logger.debug(stderr)
        return GitOutput(status, stdout)

    # Repository setup

    def init(self) -> None:
        self._run(["init", str(self._working_directory)])

    def remote_add(self, name: str, url: str) -> None:
        self._run(["remote", "add", name, url])

    def fetch(self, fetch_depth: int, ref_spec: List[str]) -> None:
        args = [
            "-c",
            "protocol.version=2",
            "fetch",
            "--no-tags",
            "--prune",
            "--progress",
            "--no-recurse-submodules",
        ]
        if fetch_depth > 0:
            args.append(f"--depth={fetch_depth}")
        elif (self._working_directory / ".git" / "shallow").exists():
            args.append("--unshallow")
        args.append(REMOTE_NAME)
        args.extend(ref_spec)

        self._retry.execute(lambda: self._run(args))

    # Checkout and branches

    def checkout(self, ref: str, start_point: Optional[str] = None) -> None:
        args = ["checkout", "--progress", "--force"]
        if start_point:
            args.extend(["-B", ref, start_point])
        else:
            args.append(ref)
        self._run(args)

    def checkout_detach(self) -> None:
        self._run(["checkout", "--detach"])

    def is_detached(self) -> bool:
        output = self._run(
            ["rev-parse", "--symbolic-full-name", "--verify", "--quiet", "HEAD"],
            allow_all_exit_codes=True,
        )
        return not output.stdout.strip().startswith("refs/heads/")

    def branch_list(self, remote: bool) -> List[str]:
        args = ["rev-parse", "--symbolic"]
        args.append(f"--remotes={REMOTE_NAME}" if remote else "--branches")
        output = self._run(args)

        branches = []
        for line in output.stdout.splitlines():
            branch = line.strip()
            if not branch:
                continue
            # Older git versions print the full ref name
            for prefix in ("refs/heads/", "refs/remotes/"):
                if branch.startswith(prefix):
                    branch = branch[len(prefix) :]
                    break
            branches.append(branch)
        return branches

    def branch_delete(self, remote: bool, branch: str) -> None:
        args = ["branch", "--delete", "--force"]
        if remote:
            args.append("--remote")
        args.append(branch)
        self._run(args)

    def tag_list(self) -> List[str]:
        output = self._run(["tag", "--list"])
        return [line.strip() for line in output.stdout.splitlines() if line.strip()]

    def try_clean(self) -> bool:
        return self._run(["clean", "-ffdx"], allow_all_exit_codes=True).exit_code == 0

    def try_reset(self) -> bool:
        output = self._run(["reset", "--hard", "HEAD"], allow_all_exit_codes=True)
        return output.exit_code == 0

    # Config

    def config(self, key: str, value: str) -> None:
        self._run(["config", "--local", key, value])

    def config_exists(self, key: str) -> bool:
        pattern = re.sub(r"([^a-zA-Z0-9_])", r"\\\1", key)
        output = self._run(
            ["config", "--local", "--name-only", "--get-regexp", pattern],
            allow_all_exit_codes=True,
        )
        return output.exit_code == 0

    def try_config_unset(self, key: str) -> bool:
        output = self._run(
            ["config", "--local", "--unset-all", key], allow_all_exit_codes=True
        )
        return output.exit_code == 0

    def try_get_fetch_url(self) -> str:
        output = self._run(
            ["config", "--local", "--get", f"remote.{REMOTE_NAME}.url"],
            allow_all_exit_codes=True,
        )
        if output.exit_code != 0:
            return ""
        return output.stdout.strip()

    def try_disable_automatic_gc(self) -> bool:
        output = self._run(
            ["config", "--local", "gc.auto", "0"], allow_all_exit_codes=True
        )
        return output.exit_code == 0

    # LFS

    def lfs_install(self) -> None:
        self._run(["lfs", "install", "--local"])

    def lfs_fetch(self, ref: str) -> None:
        args = ["lfs", "fetch", REMOTE_NAME, ref]
        self._retry.execute(lambda: self._run(args))

    # Diagnostics

    def log1(self) -> str:
        output = self._run(["log", "-1"])
        logger.info(output.stdout)
        return output.stdout


def _check_version(
    git_path: str, args: List[str], prefix: str, minimum: str, tool: str
) -> Version:
    try:
        status, stdout, _ = Git().execute(
            [git_path, *args], with_extended_output=True, with_exceptions=False
        )
    except (GitCommandNotFound, OSError) as e:
        raise GatewayUnavailableError(f"Unable to run {tool}: {e}")

    version = parse_version(stdout, prefix) if status == 0 else None
    if version is None:
        raise GatewayUnavailableError(f"Unable to determine {tool} version")
    if version < Version(minimum):
        raise GatewayUnavailableError(
            f"Minimum required {tool} version is {minimum}. "
            f"Your {tool} ('{git_path}') is {version}"
        )
    return version


def create_gateway(
    working_directory: Path, lfs: bool, retry: Optional[RetryHelper] = None
) -> GitGateway:
    """
    Build a gateway for `working_directory`, checking the git toolchain first.

    Args:
        working_directory: Directory every git command runs in
        lfs: Whether git-lfs must be available as well
        retry: Retry policy for the network primitives (fetch, lfs fetch)

    Returns:
        A ready GitGateway

    Raises:
        GatewayUnavailableError: git is not on PATH, is older than the minimum
            supported version, or git-lfs is required but missing
    """
    git_path = shutil.which("git")
    if not git_path:
        raise GatewayUnavailableError("Unable to locate executable file: git")

    version = _check_version(
        git_path, ["version"], "git version", MINIMUM_GIT_VERSION, "git"
    )
    logger.debug(f"git version {version}")

    if lfs:
        lfs_version = _check_version(
            git_path, ["lfs", "version"], "git-lfs/", MINIMUM_GIT_LFS_VERSION, "git-lfs"
        )
        logger.debug(f"git-lfs version {lfs_version}")

    return GitGateway(working_directory, git_path, retry)
