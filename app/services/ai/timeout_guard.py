"""Per-attempt timeout for provider calls."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

from app.services.ai.errors import ai_errors

T = TypeVar("T")


def _discard_outcome(task: asyncio.Future) -> None:
    # Abandoned attempts may still fail while unwinding
    if not task.cancelled():
        task.exception()


async def run_with_timeout(
    call: Callable[[], Awaitable[T]],
    *,
    timeout_ms: int,
    model: str,
) -> T:
    """Await one provider call, giving up after ``timeout_ms``.

    On expiry the pending call is cancelled and ``ai/timeout`` is raised with
    ``meta={"timeoutMs": ..., "model": ...}`` without waiting for the call to
    finish unwinding. Any other failure of the call propagates unchanged.
    """
    task = asyncio.ensure_future(call())
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)
    except asyncio.CancelledError:
        task.cancel()
        raise

    if task in done:
        return task.result()

    task.cancel()
    task.add_done_callback(_discard_outcome)
    raise ai_errors.Timeout(
        detail=f"Request timed out after {timeout_ms}ms",
        meta={"timeoutMs": timeout_ms, "model": model},
    )
