"""
Exception classes for sourcesync.
"""


class SourceSyncError(Exception):
    """Base exception for all synchronization errors."""

    pass


class GatewayUnavailableError(SourceSyncError):
    """Raised when no usable git executable (or git-lfs) can be found."""

    def __init__(self, message: str):
        super().__init__(message)


class PlaceholderError(SourceSyncError):
    """Raised when the auth placeholder cannot be replaced unambiguously."""

    def __init__(self, config_path: str, occurrences: int):
        self.config_path = config_path
        self.occurrences = occurrences
        super().__init__(
            f"Unable to replace auth placeholder in {config_path}: "
            f"expected exactly one occurrence, found {occurrences}"
        )


class RefResolutionError(SourceSyncError):
    """Raised when a ref/commit pair cannot be turned into a refspec or checkout target."""

    pass


class DownloadError(SourceSyncError):
    """Raised when the repository archive cannot be downloaded or extracted."""

    pass
