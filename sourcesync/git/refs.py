"""
Translation of a requested (ref, commit) pair into git terms.

`get_ref_spec` decides what to fetch before anything is known about the remote;
`get_checkout_info` decides what to check out once the fetched refs are known.
Prefix matching on `refs/heads/`, `refs/pull/` and `refs/tags/` is
case-insensitive, the remainder of the ref keeps its case.
"""

from dataclasses import dataclass
from typing import FrozenSet, List, Optional

from sourcesync.constants import REMOTE_NAME
from sourcesync.core.interfaces import VcsGateway
from sourcesync.exceptions import RefResolutionError

HEADS_PREFIX = "refs/heads/"
PULL_PREFIX = "refs/pull/"
TAGS_PREFIX = "refs/tags/"
REFS_PREFIX = "refs/"


@dataclass(frozen=True)
class CheckoutInfo:
    """What to check out, and for branches the remote-tracking ref to start from."""

    ref: str
    start_point: Optional[str] = None


@dataclass(frozen=True)
class RemoteRefs:
    """Snapshot of the refs available locally after a fetch."""

    branches: FrozenSet[str] = frozenset()
    tags: FrozenSet[str] = frozenset()

    @classmethod
    def from_gateway(cls, gateway: VcsGateway) -> "RemoteRefs":
        return cls(
            branches=frozenset(gateway.branch_list(remote=True)),
            tags=frozenset(gateway.tag_list()),
        )


def _has_prefix(ref: str, prefix: str) -> bool:
    return ref.upper().startswith(prefix.upper())


def get_ref_spec(ref: str, commit: str) -> List[str]:
    """
    Compute the refspecs to fetch for a ref and/or commit.

    Args:
        ref: Branch, tag or fully qualified ref; may be empty when commit is set
        commit: Full commit SHA; may be empty

    Returns:
        List of refspecs passed to `git fetch`

    Raises:
        RefResolutionError: If both ref and commit are empty
    """
    if not ref and not commit:
        raise RefResolutionError("Args ref and commit cannot both be empty")

    if commit:
        if _has_prefix(ref, HEADS_PREFIX):
            branch = ref[len(HEADS_PREFIX) :]
            return [f"+{commit}:refs/remotes/{REMOTE_NAME}/{branch}"]
        if _has_prefix(ref, PULL_PREFIX):
            branch = ref[len(PULL_PREFIX) :]
            return [f"+{commit}:refs/remotes/pull/{branch}"]
        if _has_prefix(ref, TAGS_PREFIX):
            return [f"+{commit}:{ref}"]
        return [commit]

    # Unqualified: could be a branch or a tag, fetch both candidates
    if not _has_prefix(ref, REFS_PREFIX):
        return [
            f"+refs/heads/{ref}*:refs/remotes/{REMOTE_NAME}/{ref}*",
            f"+refs/tags/{ref}*:refs/tags/{ref}*",
        ]
    if _has_prefix(ref, HEADS_PREFIX):
        branch = ref[len(HEADS_PREFIX) :]
        return [f"+{ref}:refs/remotes/{REMOTE_NAME}/{branch}"]
    if _has_prefix(ref, PULL_PREFIX):
        branch = ref[len(PULL_PREFIX) :]
        return [f"+{ref}:refs/remotes/pull/{branch}"]
    return [f"+{ref}:{ref}"]


def get_checkout_info(
    ref: str, commit: str, remote_refs: Optional[RemoteRefs] = None
) -> CheckoutInfo:
    """
    Resolve the checkout target after fetching.

    Args:
        ref: Requested ref (may be empty)
        commit: Requested commit (may be empty)
        remote_refs: Refs present after the fetch; only consulted for
            unqualified refs

    Returns:
        CheckoutInfo with the ref to check out and an optional start point

    Raises:
        RefResolutionError: If both are empty, or an unqualified ref matches
            neither a remote branch nor a tag
    """
    if not ref and not commit:
        raise RefResolutionError("Args ref and commit cannot both be empty")

    if not ref:
        return CheckoutInfo(ref=commit)

    if _has_prefix(ref, HEADS_PREFIX):
        branch = ref[len(HEADS_PREFIX) :]
        return CheckoutInfo(
            ref=branch, start_point=f"refs/remotes/{REMOTE_NAME}/{branch}"
        )
    if _has_prefix(ref, PULL_PREFIX):
        branch = ref[len(PULL_PREFIX) :]
        return CheckoutInfo(ref=f"refs/remotes/pull/{branch}")
    if _has_prefix(ref, REFS_PREFIX):
        return CheckoutInfo(ref=ref)

    remote_refs = remote_refs or RemoteRefs()
    if f"{REMOTE_NAME}/{ref}" in remote_refs.branches:
        return CheckoutInfo(ref=ref, start_point=f"refs/remotes/{REMOTE_NAME}/{ref}")
    if ref in remote_refs.tags:
        return CheckoutInfo(ref=f"refs/tags/{ref}")

    raise RefResolutionError(f"A branch or tag with the name '{ref}' could not be found")
