from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

T = TypeVar("T")
logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SECONDS = 0.3


class ViewportDebouncer(Generic[T]):
    """Forwards only the last value of a burst once the burst has been quiet
    for ``window_seconds``.

    This is a debounce, not a throttle: values arriving closer together than
    the window keep pushing the forwarded call back. ``close`` cancels the
    pending timer and ignores anything that arrives afterwards.
    """

    def __init__(
        self,
        callback: Callable[[T], Awaitable[None]],
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        sleep_fn: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if window_seconds < 0:
            raise ValueError("window_seconds must be >= 0")
        self._callback = callback
        self._window_seconds = window_seconds
        self._sleep = sleep_fn
        self._pending: asyncio.Task[None] | None = None
        self._closed = False

    @property
    def pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def on_viewport_change(self, value: T) -> None:
        if self._closed:
            return
        self._cancel_pending()
        self._pending = asyncio.create_task(self._forward_after_quiet(value))

    def close(self) -> None:
        self._closed = True
        self._cancel_pending()

    def _cancel_pending(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    async def _forward_after_quiet(self, value: T) -> None:
        await self._sleep(self._window_seconds)
        # detached so the next change starts a new window instead of cancelling this call
        self._pending = None
        try:
            await self._callback(value)
        except Exception:
            logger.exception("debounced_callback_failed")
