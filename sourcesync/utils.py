"""General utils functions"""

import random
import time
from typing import Callable, TypeVar

from sourcesync.redaction import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class RetryHelper:
    """Run an action up to `max_attempts` times with a randomized pause in between.

    The last attempt is not guarded, so its exception reaches the caller.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        min_seconds: int = 10,
        max_seconds: int = 20,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if min_seconds > max_seconds:
            raise ValueError("min_seconds must not be greater than max_seconds")
        self.max_attempts = max_attempts
        self.min_seconds = min_seconds
        self.max_seconds = max_seconds
        self._sleep = sleep

    def execute(self, action: Callable[[], T]) -> T:
        attempt = 1
        while attempt < self.max_attempts:
            try:
                return action()
            except Exception as e:
                logger.info(f"Attempt {attempt} failed: {e}")

            seconds = random.randint(self.min_seconds, self.max_seconds)
            logger.info(f"Waiting {seconds} seconds before trying again")
            self._sleep(seconds)
            attempt += 1

        return action()
