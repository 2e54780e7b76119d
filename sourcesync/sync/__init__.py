"""
Synchronization of a local directory with a remote repository.

    - synchronizer: `synchronize` and the independent `cleanup` entry point
    - reconcile: reuse or recreate a pre-existing directory
    - credentials: scoped injection/removal of the auth header
"""

from .synchronizer import cleanup, synchronize

__all__ = ["cleanup", "synchronize"]
