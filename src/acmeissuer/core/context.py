"""Cancellation context passed through every blocking operation.

Usage::

    ctx = OperationContext.with_timeout(120)
    issuer.obtain(ctx, certificate)

    # from another thread
    ctx.cancel()

Operations call :meth:`OperationContext.raise_if_cancelled` before each
blocking step and use :meth:`OperationContext.sleep` for back-off so a
cancel wakes them immediately.
"""

from __future__ import annotations

import threading
import time

from acmeissuer.errors import OperationCancelled


class OperationContext:
    """A cancellable, optionally deadline-bound operation scope.

    Parameters
    ----------
    deadline:
        Absolute :func:`time.monotonic` value after which the context
        counts as cancelled, or ``None`` for no deadline.
    parent:
        Cancelling the parent cancels this context as well.

    """

    def __init__(
        self,
        deadline: float | None = None,
        parent: OperationContext | None = None,
    ) -> None:
        self._event = threading.Event()
        self._deadline = deadline
        self._parent = parent
        self._reason = "operation cancelled"

    @classmethod
    def background(cls) -> OperationContext:
        """Return a context that is never cancelled unless asked to."""
        return cls()

    @classmethod
    def with_timeout(cls, seconds: float) -> OperationContext:
        """Return a context whose deadline is *seconds* from now."""
        return cls(deadline=time.monotonic() + seconds)

    def child(self, timeout: float | None = None) -> OperationContext:
        """Derive a context cancelled with this one or after *timeout*."""
        deadline = self._deadline
        if timeout is not None:
            own = time.monotonic() + timeout
            deadline = own if deadline is None else min(deadline, own)
        return OperationContext(deadline=deadline, parent=self)

    def cancel(self, reason: str = "operation cancelled") -> None:
        self._reason = reason
        self._event.set()

    @property
    def deadline(self) -> float | None:
        return self._deadline

    def remaining(self) -> float | None:
        """Seconds left before the deadline, ``None`` when unbounded."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self._reason = "deadline exceeded"
            return True
        return self._parent is not None and self._parent.cancelled

    @property
    def reason(self) -> str:
        if not self._event.is_set() and self._parent is not None and self._parent.cancelled:
            return self._parent.reason
        return self._reason

    def raise_if_cancelled(self) -> None:
        """Raise :class:`OperationCancelled` if the context is done."""
        if self.cancelled:
            raise OperationCancelled(self.reason)

    def sleep(self, seconds: float) -> None:
        """Sleep up to *seconds*, waking early and raising on cancel."""
        end = time.monotonic() + seconds
        while True:
            self.raise_if_cancelled()
            remaining = end - time.monotonic()
            if self._deadline is not None:
                remaining = min(remaining, self._deadline - time.monotonic())
            if remaining <= 0:
                break
            # Parent cancellation is not signalled on our event, so wake
            # periodically to re-check it.
            self._event.wait(timeout=min(remaining, 0.5))
        self.raise_if_cancelled()
