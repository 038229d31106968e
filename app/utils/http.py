"""HTTP utilities providing retry/backoff semantics."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

import httpx

logger = logging.getLogger(__name__)


class RetryConfig:
    def __init__(self, *, attempts: int = 2, backoff_seconds: float = 0.5) -> None:
        self.attempts = attempts
        self.backoff_seconds = backoff_seconds


def is_transient_status(status_code: int) -> bool:
    return status_code >= 500


async def request_with_retry(
    func: Callable[..., Awaitable[httpx.Response]],
    *args,
    retry_config: RetryConfig | None = None,
    **kwargs,
) -> httpx.Response:
    """
    Call ``func`` until it yields a non-transient response.

    Transport errors and 5xx responses are retried with linear backoff. Any
    other response, including 4xx, is returned immediately. When attempts are
    exhausted the last transport error is re-raised, or the last 5xx response
    is returned for the caller to classify.
    """
    config = retry_config or RetryConfig()
    attempt = 0
    last_exception: Exception | None = None
    last_response: httpx.Response | None = None

    while attempt < config.attempts:
        try:
            response = await func(*args, **kwargs)
        except httpx.TransportError as exc:
            last_exception = exc
            last_response = None
        else:
            if not is_transient_status(response.status_code):
                return response
            last_exception = None
            last_response = response

        attempt += 1
        if attempt >= config.attempts:
            break
        logger.warning(
            "Transient provider failure (attempt %s/%s); retrying in %.2fs",
            attempt,
            config.attempts,
            config.backoff_seconds * attempt,
        )
        await asyncio.sleep(config.backoff_seconds * attempt)

    if last_response is not None:
        return last_response
    if last_exception is not None:
        raise last_exception
    raise RuntimeError("Request failed without raising an exception")


__all__ = ["RetryConfig", "is_transient_status", "request_with_retry"]
