"""Per-call timeout helper for the four external service boundaries.

Every network call the pipelines make (fetch, embed, index upsert/query,
generate) goes through :func:`call_with_timeout` so that a slow collaborator
surfaces as the matching ``...Unavailable`` error kind instead of hanging
the request.  Cancellation from the caller (e.g. a client disconnect)
still propagates unchanged.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

import structlog

from profmatch.utils.errors import ProfMatchError
from profmatch.utils.logging import get_logger

_T = TypeVar("_T")

_logger: structlog.BoundLogger = get_logger(__name__)


async def call_with_timeout(
    awaitable: Awaitable[_T],
    timeout: float | None,
    on_timeout: Callable[[float], ProfMatchError],
    operation: str = "external_call",
) -> _T:
    """Await *awaitable*, converting a timeout into a domain error.

    Parameters
    ----------
    awaitable:
        The coroutine performing the external call.
    timeout:
        Seconds to wait.  ``None`` or a non-positive value disables the
        limit.
    on_timeout:
        Factory receiving the timeout value and returning the error to
        raise, e.g. ``lambda t: EmbeddingError(f"timed out after {t}s")``.
    operation:
        Label used in the warning log line.
    """
    if timeout is None or timeout <= 0:
        return await awaitable
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as exc:
        _logger.warning("external_call_timeout", operation=operation, timeout=timeout)
        raise on_timeout(timeout) from exc
