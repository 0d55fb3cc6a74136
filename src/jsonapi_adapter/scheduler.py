"""
Scheduling-window collaborators deciding when a coalescing batch flushes.
"""

from __future__ import annotations

import asyncio
import typing as t

import structlog

log = structlog.get_logger(__name__)


class WindowHandle(t.Protocol):
    def cancel(self) -> None: ...


class Scheduler(t.Protocol):
    """
    Shape required by the coalescing controller.

    ``on_window_close`` must invoke ``callback`` exactly once, unless the
    returned handle is cancelled first.
    """

    def on_window_close(
        self, resource_type: str, callback: t.Callable[[], None]
    ) -> WindowHandle: ...


class EventLoopScheduler:
    """
    Close windows on the running asyncio event loop.

    Parameters
    ----------
    window_seconds : float | None, optional
        Window length. ``None`` closes the window at the end of the current
        loop iteration, after every callback already scheduled has run.
    """

    def __init__(self, *, window_seconds: float | None = None) -> None:
        self._window_seconds = window_seconds

    def on_window_close(
        self, resource_type: str, callback: t.Callable[[], None]
    ) -> asyncio.Handle:
        """
        Register ``callback`` for the end of the current window.

        Parameters
        ----------
        resource_type : str
            Resource type whose window is opening.
        callback : typing.Callable[[], None]
            Flush callback.

        Returns
        -------
        asyncio.Handle
            Handle that can cancel the pending callback.
        """
        loop = asyncio.get_running_loop()
        log.debug(
            event="Opening coalescing window",
            resource_type=resource_type,
            window_seconds=self._window_seconds,
        )
        if self._window_seconds is None:
            return loop.call_soon(callback)
        return loop.call_later(self._window_seconds, callback)
