"""Retry Policy

Exponential backoff with jitter for calls to external services.
"""

import logging
from typing import Awaitable, Callable, Tuple, Type, TypeVar
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryPolicy:
    """
    Reusable retry policy

    Retries only the exception types given in retry_on. The final
    exception is re-raised unchanged once attempts are exhausted.

    Usage:
        policy = RetryPolicy(max_attempts=3, base_delay=1.0, jitter=1.0,
                             retry_on=(ConnectionError,))
        result = await policy.call(fetch, "arg")
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 10.0,
        jitter: float = 1.0,
        retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.jitter = jitter
        self.retry_on = retry_on

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential_jitter(
                initial=self.base_delay, max=self.max_delay, jitter=self.jitter
            ),
            retry=retry_if_exception_type(self.retry_on),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    async def call(self, fn: Callable[..., Awaitable[T]], *args, **kwargs) -> T:
        return await self._retrying()(fn, *args, **kwargs)

    @classmethod
    def from_config(cls, config, retry_on: Tuple[Type[BaseException], ...]) -> "RetryPolicy":
        return cls(
            max_attempts=config.GATEWAY_RETRY_MAX_ATTEMPTS,
            base_delay=config.GATEWAY_RETRY_BASE_DELAY,
            max_delay=config.GATEWAY_RETRY_MAX_DELAY,
            jitter=config.GATEWAY_RETRY_JITTER,
            retry_on=retry_on,
        )
