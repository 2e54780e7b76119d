import logging
import sys

from sourcesync.redaction import SecretMasker, get_logger


logger = get_logger("sourcesync")


def configure_logging(debug: bool):
    """
    Configures the logging system based on the debug flag.

    Every handler installed here masks registered secrets.
    """
    handler = logging.StreamHandler(sys.stdout)
    formatter = logging.Formatter("%(message)s")
    handler.setFormatter(formatter)
    handler.addFilter(SecretMasker())

    log_level = logging.DEBUG if debug else logging.INFO
    logger.setLevel(log_level)

    if not logger.hasHandlers():
        logger.addHandler(handler)
