# Copyright (C) 2015-2021 Regents of the University of California
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""
Cancellable deadlines for blocking operations.

A Context is handed down from whoever starts an operation to everything that
might block on its behalf. It finishes ("is done") either when someone calls
cancel() on it or on one of its ancestors, or when its deadline passes.

>>> ctx = Context()
>>> ctx.done()
False
>>> ctx.cancel()
>>> ctx.done()
True
>>> ctx.wait(60)
True
"""
import threading
import time
from typing import Any, List, Optional


class Context:
    """
    A cancellation signal with an optional deadline.

    :param timeout: Seconds from now until the context finishes on its own.
        None means no deadline.
    :param parent: If set, the new context finishes no later than the parent,
        and cancelling the parent cancels it too.
    """

    def __init__(self, timeout: Optional[float] = None, parent: Optional["Context"] = None) -> None:
        self._cancelled = threading.Event()
        self._lock = threading.Lock()
        self._children: List["Context"] = []

        deadline = None if timeout is None else time.monotonic() + max(timeout, 0.0)
        if parent is not None and parent.deadline is not None:
            if deadline is None or parent.deadline < deadline:
                deadline = parent.deadline
        self.deadline = deadline

        if parent is not None:
            parent._adopt(self)

    def _adopt(self, child: "Context") -> None:
        with self._lock:
            if not self._cancelled.is_set():
                self._children.append(child)
                return
        # We were already cancelled, so the child starts out cancelled.
        child.cancel()

    def with_timeout(self, seconds: float) -> "Context":
        """Derive a child context that finishes at most the given number of seconds from now."""
        return Context(timeout=seconds, parent=self)

    def cancel(self) -> None:
        """Cancel this context and every context derived from it. Safe to call more than once."""
        with self._lock:
            if self._cancelled.is_set():
                return
            self._cancelled.set()
            children, self._children = self._children, []
        for child in children:
            child.cancel()

    def cancelled(self) -> bool:
        """Return True if cancel() was called on this context or an ancestor."""
        return self._cancelled.is_set()

    def expired(self) -> bool:
        """Return True if the deadline has passed."""
        return self.deadline is not None and time.monotonic() >= self.deadline

    def done(self) -> bool:
        """Return True once the context has been cancelled or has expired."""
        return self.cancelled() or self.expired()

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None if there is no deadline."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def wait(self, seconds: float) -> bool:
        """
        Sleep for up to the given number of seconds.

        Returns True as soon as the context is done, which may be before the
        full time has elapsed. Returns False if the full time elapsed and the
        context is still live.
        """
        if self.done():
            return True
        remaining = self.remaining()
        if remaining is not None and remaining <= seconds:
            # The deadline arrives first.
            self._cancelled.wait(remaining)
            return True
        return self._cancelled.wait(seconds)

    def __enter__(self) -> "Context":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.cancel()

    def __repr__(self) -> str:
        state = 'cancelled' if self.cancelled() else 'expired' if self.expired() else 'live'
        remaining = self.remaining()
        if remaining is None:
            return f'Context({state})'
        return f'Context({state}, {remaining:.3f}s left)'
