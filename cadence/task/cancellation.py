"""Cooperative cancellation tokens.

A token is observed only at suspension points (sleeps, child invocations,
dependency polls). Cancelling a token cancels every child derived from it;
cancelling a child leaves the parent untouched.
"""

import asyncio

from cadence.errors import FrameCancelledError


class CancellationToken:
    """Cancellation signal shared by one execution and its descendants."""

    def __init__(self, parent: "CancellationToken | None" = None) -> None:
        self._event = asyncio.Event()
        self._children: list[CancellationToken] = []
        self.reason: str | None = None
        if parent is not None:
            parent._children.append(self)
            if parent.is_cancelled:
                self.cancel(parent.reason)

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def child(self) -> "CancellationToken":
        """Derive a token that is cancelled together with this one."""
        return CancellationToken(parent=self)

    def cancel(self, reason: str | None = None) -> None:
        """Request cancellation. Idempotent."""
        if self._event.is_set():
            return
        self.reason = reason
        self._event.set()
        for child in self._children:
            child.cancel(reason)

    async def wait(self) -> None:
        """Block until cancellation is requested."""
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise FrameCancelledError(reason=self.reason)
