"""Protocol interfaces for the collaborators of the synchronizer.

Protocols that decouple the reconcile/credential logic from git and HTTP.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Protocol, Union


class VcsGateway(Protocol):
    """Version-control primitives executed against one working directory."""

    @property
    def working_directory(self) -> Path:
        """Directory the gateway operates on."""
        ...

    def init(self) -> None: ...

    def remote_add(self, name: str, url: str) -> None: ...

    def fetch(self, fetch_depth: int, ref_spec: List[str]) -> None: ...

    def checkout(self, ref: str, start_point: Optional[str] = None) -> None: ...

    def checkout_detach(self) -> None: ...

    def is_detached(self) -> bool: ...

    def branch_list(self, remote: bool) -> List[str]:
        """Local branch names, or remote-tracking names such as `origin/main`."""
        ...

    def branch_delete(self, remote: bool, branch: str) -> None: ...

    def tag_list(self) -> List[str]: ...

    def try_clean(self) -> bool: ...

    def try_reset(self) -> bool: ...

    def config(self, key: str, value: str) -> None: ...

    def config_exists(self, key: str) -> bool: ...

    def try_config_unset(self, key: str) -> bool: ...

    def try_get_fetch_url(self) -> str:
        """URL of the origin remote, or an empty string."""
        ...

    def try_disable_automatic_gc(self) -> bool: ...

    def lfs_install(self) -> None: ...

    def lfs_fetch(self, ref: str) -> None: ...

    def log1(self) -> str: ...


class Downloader(Protocol):
    """Materializes a tree without VCS metadata."""

    def __call__(
        self,
        auth_token: str,
        owner: str,
        name: str,
        ref: str,
        commit: str,
        repository_path: Path,
        server_url: str = ...,
    ) -> None: ...


class GatewayFactory(Protocol):
    def __call__(self, working_directory: Path, lfs: bool) -> VcsGateway: ...


@dataclass(frozen=True)
class Available:
    """A constructed gateway."""

    gateway: VcsGateway


@dataclass(frozen=True)
class Unavailable:
    """No git executable could be used; the REST download takes over."""

    reason: str = ""


GatewayRef = Union[Available, Unavailable]
