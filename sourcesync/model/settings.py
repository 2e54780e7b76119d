import re
from pathlib import Path
from typing import Any
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from sourcesync.constants import SERVER_URL, auth_config_key

_SHA_PATTERN = re.compile(r"^[0-9a-fA-F]{40}$")


class Settings(BaseModel):
    """Inputs of a single synchronization run"""

    model_config = ConfigDict(frozen=True)

    repository_path: Path
    repository_owner: str
    repository_name: str
    ref: str = ""
    commit: str = ""
    clean: bool = True
    fetch_depth: int = 1
    lfs: bool = False
    auth_token: str = Field(repr=False)
    persist_credentials: bool = False
    server_url: str = SERVER_URL

    @model_validator(mode="before")
    @classmethod
    def move_sha_to_commit(cls, data: Any) -> Any:
        """A full SHA given as ref is treated as the commit to check out."""
        if isinstance(data, dict):
            ref = data.get("ref") or ""
            if not data.get("commit") and _SHA_PATTERN.match(ref):
                data = {**data, "commit": ref, "ref": ""}
        return data

    @field_validator("repository_path")
    @classmethod
    def absolute_path(cls, value: Path) -> Path:
        return value.expanduser().absolute()

    @field_validator("repository_owner", "repository_name")
    @classmethod
    def non_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("fetch_depth")
    @classmethod
    def non_negative_depth(cls, value: int) -> int:
        # 0 means full history
        return max(value, 0)

    @field_validator("server_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("auth_token")
    @classmethod
    def token_required(cls, value: str) -> str:
        # always written as the auth header in the gateway flow
        if not value.strip():
            raise ValueError("an auth token is required")
        return value

    @model_validator(mode="after")
    def ref_or_commit(self) -> "Settings":
        if not self.ref and not self.commit:
            raise ValueError("Either ref or commit must be provided")
        # With a commit only the commit is fetched, a short branch or tag
        # name could not be resolved afterwards
        if self.ref and self.commit and not self.ref.upper().startswith("REFS/"):
            raise ValueError(
                f"Ref '{self.ref}' must be fully qualified (refs/heads/..., "
                "refs/tags/...) when a commit is given"
            )
        return self

    @classmethod
    def from_repository(cls, repository: str, **kwargs) -> "Settings":
        """Alternative constructor taking a qualified `owner/name` repository"""
        parts = repository.strip().split("/")
        if len(parts) != 2 or not all(parts):
            raise ValueError(
                f"Invalid repository '{repository}'. Expected format {{owner}}/{{repo}}."
            )
        return cls(repository_owner=parts[0], repository_name=parts[1], **kwargs)

    @property
    def repository_url(self) -> str:
        owner = quote(self.repository_owner, safe="")
        name = quote(self.repository_name, safe="")
        return f"{self.server_url}/{owner}/{name}"

    @property
    def auth_config_key(self) -> str:
        return auth_config_key(self.server_url)
