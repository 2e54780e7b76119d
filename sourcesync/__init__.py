"""Synchronize a local directory with a ref of a remote git repository."""

__version__ = "0.1.0"
