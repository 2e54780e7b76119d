"""
Injection and removal of the ephemeral auth header.

The credential is stored as an `http.<server>/.extraheader` entry in the
repository's .git/config. A placeholder is written through `git config` first
and replaced in the file afterwards, so the real value never shows up in a
process command line (which process-creation auditing commonly records).
"""

import base64
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from sourcesync.constants import AUTH_PLACEHOLDER, AUTH_USERNAME
from sourcesync.core.interfaces import VcsGateway
from sourcesync.exceptions import PlaceholderError
from sourcesync.redaction import get_logger, register_secret

logger = get_logger(__name__)


def basic_credential(auth_token: str) -> str:
    """base64 of `x-access-token:<token>`"""
    return base64.b64encode(f"{AUTH_USERNAME}:{auth_token}".encode("utf-8")).decode(
        "ascii"
    )


def configure_auth_token(gateway: VcsGateway, auth_token: str, config_key: str) -> None:
    """
    Write the auth header for `auth_token` under `config_key`.

    Raises:
        PlaceholderError: If the placeholder does not occur exactly once in
            .git/config after writing it, since a blind replace could then
            touch the wrong entry
    """
    gateway.config(config_key, AUTH_PLACEHOLDER)

    credential = basic_credential(auth_token)
    register_secret(credential)

    config_path = Path(gateway.working_directory) / ".git" / "config"
    content = config_path.read_text(encoding="utf-8")
    occurrences = content.count(AUTH_PLACEHOLDER)
    if occurrences != 1:
        raise PlaceholderError(str(config_path), occurrences)

    content = content.replace(AUTH_PLACEHOLDER, f"AUTHORIZATION: basic {credential}")
    config_path.write_text(content, encoding="utf-8")


def remove_git_config(gateway: VcsGateway, config_key: str) -> bool:
    """
    Unset `config_key` if present. A failed unset is logged, never raised.

    Returns:
        True if the key is absent afterwards
    """
    if gateway.config_exists(config_key) and not gateway.try_config_unset(config_key):
        logger.warning(f"Failed to remove '{config_key}' from the git config")
        return False
    return True


@contextmanager
def credential_bracket(
    gateway: VcsGateway, auth_token: str, config_key: str, persist: bool = False
) -> Iterator[None]:
    """
    Keep the auth header configured for the duration of the block.

    The header is removed on every exit path, including a failure while
    configuring it, unless `persist` is set.
    """
    try:
        configure_auth_token(gateway, auth_token, config_key)
        yield
    finally:
        if not persist:
            remove_git_config(gateway, config_key)
