# Canonical remote host, the repository URL is <SERVER_URL>/<owner>/<name>
SERVER_URL = "https://github.com"
API_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"

REMOTE_NAME = "origin"

# Written through `git config` first so the real credential never appears on a
# command line, then substituted in .git/config
AUTH_PLACEHOLDER = "AUTHORIZATION: basic ***"
AUTH_USERNAME = "x-access-token"

MINIMUM_GIT_VERSION = "2.18"
MINIMUM_GIT_LFS_VERSION = "2.1"

# Left behind by a canceled run or a crashed git process
LOCK_FILES = ("index.lock", "shallow.lock")


def auth_config_key(server_url: str = SERVER_URL) -> str:
    """Config key of the extra HTTP header applied to requests against server_url."""
    return f"http.{server_url.rstrip('/')}/.extraheader"
