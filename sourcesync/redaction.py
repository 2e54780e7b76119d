"""
Masking of registered secrets in log output.

Every sourcesync module obtains its logger through `get_logger`, so a secret
registered with `register_secret` never leaves a sourcesync record verbatim.
"""

import logging
import threading

MASK = "***"

_secrets: set = set()
_secrets_lock = threading.Lock()


def register_secret(value: str) -> None:
    """Register a value that must never be written to a log handler verbatim."""
    if not value:
        return
    with _secrets_lock:
        _secrets.add(value)


def registered_secrets() -> frozenset:
    with _secrets_lock:
        return frozenset(_secrets)


def clear_secrets() -> None:
    with _secrets_lock:
        _secrets.clear()


def mask(text: str) -> str:
    # Longest first, so a secret containing another one is masked whole
    for secret in sorted(registered_secrets(), key=len, reverse=True):
        text = text.replace(secret, MASK)
    return text


class SecretMasker(logging.Filter):
    """Handler filter replacing every registered secret in a record with ***."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not registered_secrets():
            return True
        message = record.getMessage()
        masked = mask(message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


def get_logger(name: str) -> logging.Logger:
    """
    `logging.getLogger` with a SecretMasker attached to the logger itself.

    Logger filters run before propagation, so records from these loggers are
    masked for every handler, including ones installed by an embedding
    application.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, SecretMasker) for f in logger.filters):
        logger.addFilter(SecretMasker())
    return logger
