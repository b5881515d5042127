# storefront/utils/retry.py
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Tuple, Type

import redis
from tenacity import (
    Retrying,
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_fixed,
)

from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def redis_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type(redis.RedisError),
    )


@dataclass
class RetryPolicy:
    """
    Bounded retry with a fixed delay between attempts.

    `sleep` is injectable so callers (and tests) control how waiting happens.
    """

    max_attempts: int = 3
    delay_seconds: float = 1.0
    retry_on: Tuple[Type[BaseException], ...] = (Exception,)
    sleep: Callable[[float], None] = field(default=time.sleep)

    def retrying(self) -> Retrying:
        return Retrying(
            reraise=True,
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.delay_seconds),
            retry=retry_if_exception_type(self.retry_on),
            sleep=self.sleep,
            before_sleep=before_sleep_log(logger, logging.INFO),
        )

    def call(self, fn, *args, **kwargs):
        return self.retrying()(fn, *args, **kwargs)
