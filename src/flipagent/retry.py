"""Retry with exponential backoff for model API calls."""

import asyncio
import logging

import anthropic

logger = logging.getLogger(__name__)

_PROMPT_TOO_LONG_MARKERS = (
    "prompt is too long",
    "context window",
    "context length",
    "too many tokens",
)

_AUTH_MARKERS = (
    "invalid_api_key",
    "invalid x-api-key",
    "authentication_error",
    "401 unauthorized",
)


def is_prompt_too_long(exc: Exception) -> bool:
    message = str(exc).lower()
    return any(marker in message for marker in _PROMPT_TOO_LONG_MARKERS)


def is_auth_error(exc: Exception) -> bool:
    if isinstance(exc, anthropic.AuthenticationError):
        return True
    message = str(exc).lower()
    return any(marker in message for marker in _AUTH_MARKERS)


def is_non_retryable(exc: Exception) -> bool:
    """Errors that will fail the same way on every attempt."""
    return is_prompt_too_long(exc) or is_auth_error(exc)


async def call_with_retry(
    request_builder, max_attempts: int = 3, base_delay: float = 1.0, sleep=None
):
    """Await ``request_builder()`` until it succeeds, with exponential backoff.

    Delays are base_delay * 2^(attempt-1): 1s, 2s, 4s by default.  Prompt too
    long and authentication failures are re-raised immediately; any other
    error is retried until ``max_attempts`` is used up, then re-raised.
    """
    if sleep is None:
        sleep = asyncio.sleep
    for attempt in range(1, max_attempts + 1):
        try:
            return await request_builder()
        except Exception as exc:
            if is_non_retryable(exc) or attempt >= max_attempts:
                raise
            delay = base_delay * (2 ** (attempt - 1))
            logger.warning(
                "Model call failed (attempt %d/%d), retrying in %.1fs: %s",
                attempt,
                max_attempts,
                delay,
                exc,
                extra={"attempt": attempt},
            )
            await sleep(delay)
