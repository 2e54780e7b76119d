import io
import logging
import shutil

from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pytest
from dulwich import porcelain

from sourcesync.redaction import clear_secrets
from sourcesync.state import StateStore


def pytest_runtest_setup(item):
    if "integration" in item.keywords and shutil.which("git") is None:
        pytest.skip("git executable not available")


@pytest.fixture
def capture_logs():
    """Fixture to capture log output during tests."""
    log_stream = io.StringIO()
    handler = logging.StreamHandler(log_stream)
    logger = logging.getLogger("sourcesync")
    logger.addHandler(handler)
    previous_level = logger.level
    logger.setLevel(logging.DEBUG)

    yield log_stream

    logger.removeHandler(handler)
    logger.setLevel(previous_level)
    log_stream.close()


@pytest.fixture(autouse=True)
def _forget_secrets():
    yield
    clear_secrets()


class FakeGateway:
    """
    Recording stand-in for GitGateway.

    Config entries are stored in .git/config as `key = value` lines so the
    credential manager can edit the file the way it does for real repositories.
    Methods named in `failures` raise the given exception.
    """

    def __init__(
        self,
        working_directory: Path,
        fetch_url: str = "",
        detached: bool = False,
        branches: Iterable[str] = (),
        remote_branches: Iterable[str] = (),
        tags: Iterable[str] = (),
        clean_ok: bool = True,
        reset_ok: bool = True,
        unset_ok: bool = True,
        gc_ok: bool = True,
        failures: Optional[Dict[str, Exception]] = None,
    ):
        self._working_directory = Path(working_directory)
        self.fetch_url = fetch_url
        self.detached = detached
        self.branches: List[str] = list(branches)
        self.remote_branches: List[str] = list(remote_branches)
        self.tags: List[str] = list(tags)
        self.clean_ok = clean_ok
        self.reset_ok = reset_ok
        self.unset_ok = unset_ok
        self.gc_ok = gc_ok
        self.failures = dict(failures or {})
        self.calls: List[tuple] = []
        self.config_during_fetch: Optional[str] = None
        self.checked_out: Optional[tuple] = None

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if name in self.failures:
            raise self.failures[name]

    def call_names(self) -> List[str]:
        return [call[0] for call in self.calls]

    @property
    def working_directory(self) -> Path:
        return self._working_directory

    @property
    def config_path(self) -> Path:
        return self._working_directory / ".git" / "config"

    def config_text(self) -> str:
        if not self.config_path.exists():
            return ""
        return self.config_path.read_text()

    def init(self) -> None:
        self._record("init")
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        self.config_path.touch()

    def remote_add(self, name: str, url: str) -> None:
        self._record("remote_add", name, url)
        self.fetch_url = url

    def fetch(self, fetch_depth: int, ref_spec: List[str]) -> None:
        self._record("fetch", fetch_depth, list(ref_spec))
        self.config_during_fetch = self.config_text()

    def checkout(self, ref: str, start_point: Optional[str] = None) -> None:
        self._record("checkout", ref, start_point)
        self.checked_out = (ref, start_point)

    def checkout_detach(self) -> None:
        self._record("checkout_detach")
        self.detached = True

    def is_detached(self) -> bool:
        self._record("is_detached")
        return self.detached

    def branch_list(self, remote: bool) -> List[str]:
        self._record("branch_list", remote)
        return list(self.remote_branches if remote else self.branches)

    def branch_delete(self, remote: bool, branch: str) -> None:
        self._record("branch_delete", remote, branch)
        (self.remote_branches if remote else self.branches).remove(branch)

    def tag_list(self) -> List[str]:
        self._record("tag_list")
        return list(self.tags)

    def try_clean(self) -> bool:
        self._record("try_clean")
        return self.clean_ok

    def try_reset(self) -> bool:
        self._record("try_reset")
        return self.reset_ok

    def config(self, key: str, value: str) -> None:
        self._record("config", key, value)
        with open(self.config_path, "a") as f:
            f.write(f"{key} = {value}\n")

    def config_exists(self, key: str) -> bool:
        self._record("config_exists", key)
        return any(
            line.startswith(f"{key} = ") for line in self.config_text().splitlines()
        )

    def try_config_unset(self, key: str) -> bool:
        self._record("try_config_unset", key)
        if not self.unset_ok:
            return False
        lines = [
            line
            for line in self.config_text().splitlines(keepends=True)
            if not line.startswith(f"{key} = ")
        ]
        self.config_path.write_text("".join(lines))
        return True

    def try_get_fetch_url(self) -> str:
        self._record("try_get_fetch_url")
        return self.fetch_url

    def try_disable_automatic_gc(self) -> bool:
        self._record("try_disable_automatic_gc")
        return self.gc_ok

    def lfs_install(self) -> None:
        self._record("lfs_install")

    def lfs_fetch(self, ref: str) -> None:
        self._record("lfs_fetch", ref)

    def log1(self) -> str:
        self._record("log1")
        return "commit 0000000000000000000000000000000000000000"


@pytest.fixture
def fake_gateway_class():
    return FakeGateway


@pytest.fixture
def repository_path(tmp_path) -> Path:
    """Target directory of a sync (not created)."""
    return tmp_path / "workspace" / "widgets"


@pytest.fixture
def existing_repository(repository_path) -> Path:
    """A directory that looks like a previous checkout: .git/config and one file."""
    (repository_path / ".git").mkdir(parents=True)
    (repository_path / ".git" / "config").write_text("")
    (repository_path / "sentinel.txt").write_text("left behind")
    return repository_path


@pytest.fixture
def state_store(tmp_path) -> StateStore:
    return StateStore(tmp_path / "state")


# git fixtures


def _commit_files(repo_dir: Path, files: Dict[str, str], message: bytes) -> str:
    for rel_path, content in files.items():
        path = repo_dir / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    porcelain.add(str(repo_dir), paths=[str(repo_dir / p) for p in files])
    commit_sha = porcelain.commit(
        str(repo_dir),
        message=message,
        author=b"Test <test@test>",
        committer=b"Test <test@test>",
    )
    return commit_sha.decode("ascii")


@pytest.fixture
def remote_server(tmp_path):
    """
    A local stand-in for the git server: `<server_url>/acme/widgets` is a
    repository with a `main` branch and a `v1.0` tag.

    Returns:
        Tuple of (server_url, head commit of main)
    """
    server_dir = tmp_path / "server"
    repo_dir = server_dir / "acme" / "widgets"
    repo_dir.mkdir(parents=True)
    porcelain.init(str(repo_dir))

    commit_sha = _commit_files(
        repo_dir,
        {"README.md": "# widgets\n", "src/widget.py": "VALUE = 1\n"},
        b"initial commit",
    )

    repo = porcelain.open_repo(str(repo_dir))
    try:
        repo.refs[b"refs/heads/main"] = commit_sha.encode("ascii")
        repo.refs[b"refs/tags/v1.0"] = commit_sha.encode("ascii")
        repo.refs.set_symbolic_ref(b"HEAD", b"refs/heads/main")
    finally:
        repo.close()

    return server_dir.as_uri(), commit_sha
